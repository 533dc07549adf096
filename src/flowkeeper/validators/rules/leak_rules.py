"""Rules catching hidden values that reappear in clear text."""

from typing import List

from ...privacy.redactor import SecretMapping, json_escape
from ..base import BaseCheckRule, RuleFinding, RuleSeverity


class LeakedValueRule(BaseCheckRule):
    """Check that no hidden value appears literally in the redacted document."""

    def __init__(self, min_length: int = 3):
        self.min_length = min_length

    @property
    def name(self) -> str:
        return "no_leaked_values"

    @property
    def description(self) -> str:
        return "Warns when a value behind a placeholder appears in clear text"

    def validate(self, document: str, mapping: SecretMapping) -> List[RuleFinding]:
        findings = []
        for token in mapping:
            original = mapping.resolve(token)
            if original is None or len(original) < self.min_length:
                continue
            escaped = json_escape(original)
            if escaped in document:
                findings.append(
                    RuleFinding(
                        rule_name=self.name,
                        severity=RuleSeverity.WARNING,
                        message=f"The value behind {token} appears in clear text in the document",
                        placeholder=token,
                    )
                )
        return findings
