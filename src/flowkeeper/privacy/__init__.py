"""Secret extraction and rehydration engine.

Regex and rule based; uses only the Python stdlib.
"""

from flowkeeper.privacy.classifier import (
    PRESERVE_RULES,
    Classification,
    ClassificationDecision,
    PreserveRule,
    ValueClassifier,
    classify,
    explain,
)
from flowkeeper.privacy.placeholders import (
    PLACEHOLDER_PATTERN,
    PlaceholderKind,
    format_placeholder,
    is_placeholder,
)
from flowkeeper.privacy.redactor import (
    ExtractionResult,
    PlaceholderUsage,
    SecretMapping,
    SecretRedactor,
    extract,
    inspect_placeholders,
    rehydrate,
    rehydrate_value,
)

__all__ = [
    "Classification",
    "ClassificationDecision",
    "ExtractionResult",
    "PLACEHOLDER_PATTERN",
    "PRESERVE_RULES",
    "PlaceholderKind",
    "PlaceholderUsage",
    "PreserveRule",
    "SecretMapping",
    "SecretRedactor",
    "ValueClassifier",
    "classify",
    "explain",
    "extract",
    "format_placeholder",
    "inspect_placeholders",
    "is_placeholder",
    "rehydrate",
    "rehydrate_value",
]
