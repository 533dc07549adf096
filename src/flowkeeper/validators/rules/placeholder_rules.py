"""Rules comparing the placeholders in an edited document with its mapping."""

import re
from typing import List

from ...privacy.placeholders import PLACEHOLDER_PATTERN
from ...privacy.redactor import SecretMapping, inspect_placeholders
from ..base import BaseCheckRule, RuleFinding, RuleSeverity

# Anything shaped like a placeholder, including ones the grammar rejects
_PLACEHOLDER_LIKE = re.compile(r"\{\{[A-Za-z]+_[0-9]+\}\}")


class UnknownPlaceholderRule(BaseCheckRule):
    """Flag placeholders with no mapping entry; they are pushed as literal text."""

    @property
    def name(self) -> str:
        return "unknown_placeholders"

    @property
    def description(self) -> str:
        return "Warns about placeholders that have no recorded value"

    def validate(self, document: str, mapping: SecretMapping) -> List[RuleFinding]:
        usage = inspect_placeholders(document, mapping)
        return [
            RuleFinding(
                rule_name=self.name,
                severity=RuleSeverity.WARNING,
                message=f"Placeholder {token} has no recorded value and will be pushed as literal text",
                placeholder=token,
            )
            for token in usage.unknown
        ]


class MalformedPlaceholderRule(BaseCheckRule):
    """Flag placeholder-like text that does not follow the token grammar."""

    @property
    def name(self) -> str:
        return "malformed_placeholders"

    @property
    def description(self) -> str:
        return "Warns about tokens such as {{email_1}} or {{URL_01}}"

    def validate(self, document: str, mapping: SecretMapping) -> List[RuleFinding]:
        findings = []
        seen = set()
        for match in _PLACEHOLDER_LIKE.finditer(document):
            token = match.group(0)
            if token in seen or PLACEHOLDER_PATTERN.fullmatch(token):
                continue
            seen.add(token)
            findings.append(
                RuleFinding(
                    rule_name=self.name,
                    severity=RuleSeverity.WARNING,
                    message=f"{token} looks like a placeholder but is not one and will not be rehydrated",
                    placeholder=token,
                )
            )
        return findings


class RemovedPlaceholderRule(BaseCheckRule):
    """Report mapping entries the edited document no longer references."""

    @property
    def name(self) -> str:
        return "removed_placeholders"

    @property
    def description(self) -> str:
        return "Lists placeholders removed by the editor"

    def validate(self, document: str, mapping: SecretMapping) -> List[RuleFinding]:
        usage = inspect_placeholders(document, mapping)
        return [
            RuleFinding(
                rule_name=self.name,
                severity=RuleSeverity.INFO,
                message=f"Placeholder {token} was removed from the document",
                placeholder=token,
            )
            for token in usage.unused
        ]
