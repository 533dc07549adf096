"""Check engine that runs rules and produces CheckResult."""

import logging
from datetime import datetime
from typing import List, Optional

from ..privacy.redactor import SecretMapping
from ..schemas.base import CheckResult
from .base import BaseCheckRule, RuleFinding, RuleSeverity

logger = logging.getLogger(__name__)


class CheckEngine:
    """
    Runs check rules against an edited document and produces a CheckResult.

    Usage:
        engine = CheckEngine()  # loads built-in rules
        result = engine.check(edited_text, mapping)

        # Custom rules only:
        engine = CheckEngine(rules=[MyRule()], include_defaults=False)
    """

    def __init__(
        self,
        rules: Optional[List[BaseCheckRule]] = None,
        include_defaults: bool = True,
    ):
        self._rules: List[BaseCheckRule] = []
        if include_defaults:
            self._rules.extend(self._get_default_rules())
        if rules:
            self._rules.extend(rules)

    @staticmethod
    def _get_default_rules() -> List[BaseCheckRule]:
        from .rules import get_all_default_rules

        return get_all_default_rules()

    @property
    def rules(self) -> List[BaseCheckRule]:
        return list(self._rules)

    def add_rule(self, rule: BaseCheckRule) -> None:
        self._rules.append(rule)

    def remove_rule(self, rule_name: str) -> None:
        self._rules = [r for r in self._rules if r.name != rule_name]

    def check(self, document: str, mapping: SecretMapping) -> CheckResult:
        all_findings: List[RuleFinding] = []
        rules_checked: List[str] = []

        for rule in self._rules:
            rules_checked.append(rule.name)
            try:
                findings = rule.validate(document, mapping)
                all_findings.extend(findings)
            except Exception:
                logger.exception("Check rule '%s' failed", rule.name)
                all_findings.append(
                    RuleFinding(
                        rule_name=rule.name,
                        severity=RuleSeverity.WARNING,
                        message=f"Rule '{rule.name}' raised an exception and was skipped",
                    )
                )

        return self._build_result(all_findings, rules_checked)

    @staticmethod
    def _build_result(
        findings: List[RuleFinding],
        rules_checked: List[str],
    ) -> CheckResult:
        errors = [f.message for f in findings if f.severity == RuleSeverity.ERROR]
        warnings = [f.message for f in findings if f.severity == RuleSeverity.WARNING]
        info = [f.message for f in findings if f.severity == RuleSeverity.INFO]

        return CheckResult(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            info=info,
            rules_checked=rules_checked,
            timestamp=datetime.now(),
        )
