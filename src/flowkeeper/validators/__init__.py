"""
Pre-push checks for edited workflow definitions.

Flags edits that would break the upload or the round trip: invalid JSON,
placeholders the mapping does not know, placeholders the editor removed and
hidden values that reappear in clear text.
"""

from ..privacy.redactor import SecretMapping
from ..schemas.base import CheckResult
from .base import BaseCheckRule, RuleFinding, RuleSeverity
from .engine import CheckEngine


def check(document: str, mapping: SecretMapping, rules=None, include_defaults=True) -> CheckResult:
    """
    One-liner check function.

    Args:
        document: Edited, still redacted JSON text
        mapping: SecretMapping recorded at extraction
        rules: Optional custom rules
        include_defaults: Include built-in rules (default: True)

    Returns:
        CheckResult
    """
    engine = CheckEngine(rules=rules, include_defaults=include_defaults)
    return engine.check(document, mapping)


__all__ = [
    "BaseCheckRule",
    "CheckEngine",
    "RuleFinding",
    "RuleSeverity",
    "check",
]
