"""Value classification for workflow definition strings.

Every string value in a definition is either structural (kept visible) or
sensitive (hidden behind a placeholder). Rules are evaluated in order and the
first match wins:

1. automation expressions (``@...``) and already placeholdered text (``{{...``)
2. values shorter than 3 characters
3. the static preserve table (schema URIs, action types, HTTP verbs, ...)
4. email addresses
5. ``http(s)://`` URLs, except schema URLs which stay visible
6. GUIDs
7. everything else is hidden as a generic string

Rule 7 hides every string no earlier rule recognises, structural or not.

Example:
    classify("Compose")                 # Classification.PRESERVE
    classify("bob@example.com")         # Classification.EXTRACT_AS_EMAIL
    classify("Send the weekly report")  # Classification.EXTRACT_AS_STRING
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union

from .placeholders import PlaceholderKind

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
URL_PATTERN = re.compile(r"https?://[^\s\"'<>]+")
GUID_PATTERN = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}\b"
)
SCHEMA_URL_PATTERN = re.compile(r"https://schema\.|https?://json-schema\.org/")

# Typed patterns in extraction order.
TYPED_PATTERNS: dict[PlaceholderKind, re.Pattern] = {
    PlaceholderKind.EMAIL: EMAIL_PATTERN,
    PlaceholderKind.URL: URL_PATTERN,
    PlaceholderKind.GUID: GUID_PATTERN,
}

MIN_CONTENT_LENGTH = 3

ACTION_TYPES = (
    "Compose",
    "Http",
    "Request",
    "Response",
    "Recurrence",
    "Button",
    "If",
    "Foreach",
    "Until",
    "Switch",
    "Scope",
    "Terminate",
    "Wait",
    "Workflow",
    "Expression",
    "InitializeVariable",
    "SetVariable",
    "IncrementVariable",
    "DecrementVariable",
    "AppendToArrayVariable",
    "AppendToStringVariable",
    "ParseJson",
    "Query",
    "Select",
    "Table",
    "Join",
    "ApiConnection",
    "ApiConnectionWebhook",
    "OpenApiConnection",
    "OpenApiConnectionWebhook",
    "OpenApiConnectionNotification",
)
HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
RUN_STATES = ("Succeeded", "Failed", "Skipped", "TimedOut")
TYPE_NAMES = ("string", "integer", "boolean", "array", "object", "number")
CONTENT_TYPES = (
    "application/json",
    "application/xml",
    "application/octet-stream",
    "application/x-www-form-urlencoded",
    "multipart/form-data",
    "text/plain",
    "text/html",
    "text/csv",
)


def _one_of(literals: Iterable[str]) -> str:
    return "(?:" + "|".join(re.escape(literal) for literal in literals) + ")"


@dataclass(frozen=True)
class PreserveRule:
    """A pattern whose full match marks a value as structural."""

    name: str
    pattern: re.Pattern
    reason: str

    @classmethod
    def from_regex(cls, name: str, regex: str, reason: str) -> "PreserveRule":
        return cls(name=name, pattern=re.compile(regex, re.DOTALL), reason=reason)

    def matches(self, value: str) -> bool:
        return self.pattern.fullmatch(value) is not None


PRESERVE_RULES: tuple[PreserveRule, ...] = (
    PreserveRule.from_regex("expression", r"@.*", "automation expression"),
    PreserveRule.from_regex("placeholder", r"\{\{.*", "already placeholdered text"),
    PreserveRule.from_regex(
        "short", r".{0,%d}" % (MIN_CONTENT_LENGTH - 1), "too short to be content"
    ),
    PreserveRule.from_regex(
        "schema_uri",
        r"(?:https://schema\.management\.azure\.com/|http://json-schema\.org/)\S*",
        "known schema URI",
    ),
    PreserveRule.from_regex(
        "content_type", _one_of(CONTENT_TYPES), "known content type"
    ),
    PreserveRule.from_regex("action_type", _one_of(ACTION_TYPES), "known action type"),
    PreserveRule.from_regex("http_method", _one_of(HTTP_METHODS), "HTTP verb"),
    PreserveRule.from_regex("run_state", _one_of(RUN_STATES), "run state"),
    PreserveRule.from_regex("type_name", _one_of(TYPE_NAMES), "primitive type name"),
    PreserveRule.from_regex(
        "version", r"\d+\.\d+(?:\.\d+\.\d+)?", "version string"
    ),
    PreserveRule.from_regex("blank", r"\s*", "blank string"),
)


class Classification(str, Enum):
    """Outcome of classifying a single string value."""

    PRESERVE = "preserve"
    EXTRACT_AS_EMAIL = "email"
    EXTRACT_AS_URL = "url"
    EXTRACT_AS_GUID = "guid"
    EXTRACT_AS_STRING = "string"

    @property
    def kind(self) -> Optional[PlaceholderKind]:
        """Placeholder kind for extracting classifications, None for PRESERVE."""
        return _KIND_BY_CLASSIFICATION.get(self)


_KIND_BY_CLASSIFICATION = {
    Classification.EXTRACT_AS_EMAIL: PlaceholderKind.EMAIL,
    Classification.EXTRACT_AS_URL: PlaceholderKind.URL,
    Classification.EXTRACT_AS_GUID: PlaceholderKind.GUID,
    Classification.EXTRACT_AS_STRING: PlaceholderKind.STRING,
}


@dataclass(frozen=True)
class ClassificationDecision:
    """A classification together with the rule that produced it."""

    classification: Classification
    rule: str
    reason: str

    @property
    def preserved(self) -> bool:
        return self.classification is Classification.PRESERVE


def is_schema_url(value: str) -> bool:
    """Schema URLs describe structure and are never hidden."""
    return SCHEMA_URL_PATTERN.match(value) is not None


class ValueClassifier:
    """Ordered rule set deciding which strings stay visible.

    Args:
        extra_preserve: Additional preserve rules, or plain regexes, checked
            after the built-in table. Useful for organisation specific
            connector or operation names.
    """

    def __init__(
        self, extra_preserve: Optional[Iterable[Union[PreserveRule, str]]] = None
    ):
        rules = list(PRESERVE_RULES)
        for index, rule in enumerate(extra_preserve or ()):
            if isinstance(rule, str):
                rule = PreserveRule.from_regex(
                    f"custom_{index + 1}", rule, "custom preserve pattern"
                )
            rules.append(rule)
        self._rules: tuple[PreserveRule, ...] = tuple(rules)

    @property
    def rules(self) -> tuple[PreserveRule, ...]:
        return self._rules

    def explain(self, value: str) -> ClassificationDecision:
        """Classify ``value`` and report which rule decided it."""
        if not isinstance(value, str):
            raise TypeError(f"Only strings can be classified, got {type(value)}")

        for rule in self._rules:
            if rule.matches(value):
                return ClassificationDecision(Classification.PRESERVE, rule.name, rule.reason)

        if EMAIL_PATTERN.fullmatch(value):
            return ClassificationDecision(
                Classification.EXTRACT_AS_EMAIL, "email", "email address"
            )

        if URL_PATTERN.fullmatch(value):
            if is_schema_url(value):
                return ClassificationDecision(
                    Classification.PRESERVE, "schema_url", "schema URL"
                )
            return ClassificationDecision(Classification.EXTRACT_AS_URL, "url", "URL")

        if GUID_PATTERN.fullmatch(value):
            return ClassificationDecision(Classification.EXTRACT_AS_GUID, "guid", "GUID")

        return ClassificationDecision(
            Classification.EXTRACT_AS_STRING, "string", "unrecognised content"
        )

    def classify(self, value: str) -> Classification:
        return self.explain(value).classification


default_classifier = ValueClassifier()


def classify(value: str) -> Classification:
    """Classify ``value`` with the built-in rule set."""
    return default_classifier.classify(value)


def explain(value: str) -> ClassificationDecision:
    return default_classifier.explain(value)
