"""Secret extraction and rehydration for workflow definitions.

Extraction walks a parsed JSON document and swaps sensitive string values for
placeholder tokens, recording what each token stood for. Rehydration puts the
recorded values back into a (possibly edited) copy of the redacted text.
"""

from __future__ import annotations

import copy
import json
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Mapping, Optional, Union

from ..exceptions import DocumentParseError
from .classifier import (
    TYPED_PATTERNS,
    Classification,
    ValueClassifier,
    default_classifier,
    is_schema_url,
)
from .placeholders import (
    PLACEHOLDER_PATTERN,
    PlaceholderCounters,
    PlaceholderKind,
    find_placeholders,
    is_placeholder,
    placeholder_kind,
)

logger = logging.getLogger(__name__)

JsonDocument = Union[str, bytes, dict, list]

_LONE_SURROGATE = re.compile(r"[\ud800-\udfff]")


@dataclass
class SecretMapping:
    """Placeholder to original value table for a single document.

    Values may themselves contain placeholders (a free-text value with an
    email inside it is hidden as ``{{STRING_n}}`` whose value holds
    ``{{EMAIL_m}}``); ``resolve`` and ``expand`` follow those references.
    """

    _placeholder_to_original: dict[str, str] = field(default_factory=dict)

    def add(self, placeholder: str, original: str) -> None:
        """Record the original value behind ``placeholder``."""
        if not is_placeholder(placeholder):
            raise ValueError(f"Not a placeholder token: {placeholder!r}")
        if placeholder in self._placeholder_to_original:
            raise ValueError(f"Placeholder already mapped: {placeholder}")
        self._placeholder_to_original[placeholder] = original

    def get_original(self, placeholder: str) -> Optional[str]:
        """Get the recorded value for a placeholder, without following references."""
        return self._placeholder_to_original.get(placeholder)

    def resolve(self, placeholder: str) -> Optional[str]:
        """Get the fully expanded original value for a placeholder."""
        original = self._placeholder_to_original.get(placeholder)
        if original is None:
            return None
        return self._expand(original, frozenset({placeholder}))

    def expand(self, text: str) -> str:
        """Replace every known placeholder in ``text`` with its original value."""
        return self._expand(text, frozenset())

    def _expand(self, text: str, active: frozenset) -> str:
        def substitute(match: re.Match) -> str:
            token = match.group(0)
            original = self._placeholder_to_original.get(token)
            if original is None or token in active:
                return token
            return self._expand(original, active | {token})

        return PLACEHOLDER_PATTERN.sub(substitute, text)

    def placeholders(self) -> list[str]:
        return list(self._placeholder_to_original)

    def to_dict(self) -> dict[str, str]:
        return dict(self._placeholder_to_original)

    @classmethod
    def from_dict(cls, data: Mapping[str, str]) -> "SecretMapping":
        mapping = cls()
        for placeholder, original in data.items():
            mapping.add(placeholder, original)
        return mapping

    def __contains__(self, placeholder: object) -> bool:
        return placeholder in self._placeholder_to_original

    def __iter__(self) -> Iterator[str]:
        return iter(self._placeholder_to_original)

    def __len__(self) -> int:
        return len(self._placeholder_to_original)

    def __bool__(self) -> bool:
        return bool(self._placeholder_to_original)


@dataclass
class ExtractionResult:
    """Outcome of one extraction run."""

    redacted: str
    document: Any
    mapping: SecretMapping
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def placeholder_count(self) -> int:
        return len(self.mapping)


@dataclass
class PlaceholderUsage:
    """Which placeholders an edited document still references."""

    used: list[str] = field(default_factory=list)
    unused: list[str] = field(default_factory=list)
    unknown: list[str] = field(default_factory=list)


def _iter_string_slots(node: Any) -> Iterator[tuple[Any, Any]]:
    """Yield (container, key) for every string value, in document order.

    Object keys are never yielded.
    """
    if isinstance(node, dict):
        items = node.items()
    elif isinstance(node, list):
        items = enumerate(node)
    else:
        return

    for key, value in items:
        if isinstance(value, str):
            yield node, key
        elif isinstance(value, (dict, list)):
            yield from _iter_string_slots(value)


def _escape_surrogates(text: str) -> str:
    """Turn lone UTF-16 surrogates back into ``\\uXXXX`` escapes.

    ``json.dumps(..., ensure_ascii=False)`` emits them raw, and raw surrogates
    cannot be encoded as UTF-8.
    """
    return _LONE_SURROGATE.sub(lambda match: "\\u%04x" % ord(match.group()), text)


def json_escape(value: str) -> str:
    """Escape ``value`` for insertion between the quotes of a JSON string."""
    return _escape_surrogates(json.dumps(value, ensure_ascii=False)[1:-1])


def dump_json(data: Any, indent: Optional[int] = 2) -> str:
    """Serialize ``data`` as readable, UTF-8 encodable, standard JSON.

    Raises:
        ValueError: If ``data`` holds NaN or infinite floats
    """
    return _escape_surrogates(
        json.dumps(data, indent=indent, ensure_ascii=False, allow_nan=False)
    )


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"Number {text} is out of range")
    return value


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not a valid JSON value")


def load_json(text: Union[str, bytes, bytearray]) -> Any:
    """Parse standard JSON only: NaN, Infinity and overflowing numbers are rejected.

    Raises:
        ValueError: On invalid JSON (``json.JSONDecodeError``), undecodable
            bytes or non-finite numbers
    """
    return json.loads(text, parse_float=_finite_float, parse_constant=_reject_constant)


def parse_document(document: JsonDocument, source: Optional[str] = None) -> Any:
    """Parse JSON text, or deep-copy an already parsed document."""
    if isinstance(document, (str, bytes, bytearray)):
        try:
            return load_json(document)
        except ValueError as e:
            raise DocumentParseError(str(e), source=source) from e
    return copy.deepcopy(document)


class SecretRedactor:
    """Hide sensitive values in workflow definitions behind placeholders.

    Extraction runs in two phases over the string values of the document:

    - typed: every email, then every URL, then every GUID found anywhere in a
      value is replaced by its own ``{{EMAIL_n}}``/``{{URL_n}}``/``{{GUID_n}}``
      (each occurrence is numbered separately, schema URLs are kept)
    - generic: every remaining value the classifier does not preserve becomes
      ``{{STRING_n}}``

    Counters start from 1 on every call. Placeholder tokens that already
    appear in the input are left as literal text and their numbers are never
    issued, so rehydration cannot confuse them with new ones.

    Example:
        redactor = SecretRedactor()
        result = redactor.extract('{"to": "bob@x.com", "type": "Compose"}')
        # result.document == {"to": "{{EMAIL_1}}", "type": "Compose"}
        restored = redactor.rehydrate(result.redacted, result.mapping)
    """

    def __init__(
        self,
        classifier: Optional[ValueClassifier] = None,
        indent: Optional[int] = 2,
    ):
        """Initialize the redactor.

        Args:
            classifier: Classifier deciding which values stay visible.
            indent: JSON indentation of the redacted text (None for compact).
        """
        self.classifier = classifier or default_classifier
        self.indent = indent

    def extract(
        self, document: JsonDocument, source: Optional[str] = None
    ) -> ExtractionResult:
        """Replace sensitive values in ``document`` with placeholders.

        Args:
            document: JSON text or an already parsed JSON value
            source: Optional label for error messages (e.g. the file name)

        Returns:
            ExtractionResult with the redacted text, redacted document and mapping

        Raises:
            DocumentParseError: If ``document`` is text that is not valid JSON
        """
        holder = [parse_document(document, source=source)]
        try:
            reserved = frozenset(
                find_placeholders(json.dumps(holder[0], allow_nan=False))
            )
        except ValueError as e:
            raise DocumentParseError(str(e), source=source) from e
        if reserved:
            logger.warning(
                "%s already contains %d placeholder tokens; they are kept as "
                "literal text and their numbers are not reused",
                source or "Document",
                len(reserved),
            )

        counters = PlaceholderCounters(reserved=reserved)
        mapping = SecretMapping()

        slots = list(_iter_string_slots(holder))
        originals = [container[key] for container, key in slots]
        rewritten = list(originals)
        failed: set[int] = set()

        for kind, pattern in TYPED_PATTERNS.items():
            for index, text in enumerate(rewritten):
                if index in failed:
                    continue
                try:
                    rewritten[index] = self._replace_typed(
                        text, kind, pattern, counters, mapping
                    )
                except Exception as e:
                    logger.debug("Typed scan failed for value %d: %s", index, e)
                    failed.add(index)

        for index, (container, key) in enumerate(slots):
            original = originals[index]
            current = rewritten[index]
            if index in failed:
                container[key] = self._hide(current, counters, mapping)
            elif current != original:
                if is_placeholder(current) or self._preserved(original):
                    container[key] = current
                else:
                    container[key] = self._hide(current, counters, mapping)
            elif not self._preserved(original):
                container[key] = self._hide(original, counters, mapping)

        redacted = dump_json(holder[0], indent=self.indent)
        counts = {kind.value: 0 for kind in PlaceholderKind}
        for token in mapping:
            counts[placeholder_kind(token).value] += 1

        logger.debug(
            "Extracted %d placeholders from %s (%s)",
            len(mapping),
            source or "document",
            counts,
        )
        return ExtractionResult(
            redacted=redacted,
            document=holder[0],
            mapping=mapping,
            counts=counts,
        )

    @staticmethod
    def _replace_typed(
        text: str,
        kind: PlaceholderKind,
        pattern: re.Pattern,
        counters: PlaceholderCounters,
        mapping: SecretMapping,
    ) -> str:
        matches = [
            match
            for match in pattern.finditer(text)
            if not (kind is PlaceholderKind.URL and is_schema_url(match.group()))
        ]
        if not matches:
            return text

        parts = []
        position = 0
        for match in matches:
            token = counters.next(kind)
            mapping.add(token, match.group())
            parts.append(text[position : match.start()])
            parts.append(token)
            position = match.end()
        parts.append(text[position:])
        return "".join(parts)

    def _preserved(self, value: str) -> bool:
        try:
            return self.classifier.classify(value) is Classification.PRESERVE
        except Exception as e:
            logger.debug("Classification failed, hiding value: %s", e)
            return False

    @staticmethod
    def _hide(
        value: str, counters: PlaceholderCounters, mapping: SecretMapping
    ) -> str:
        token = counters.next(PlaceholderKind.STRING)
        mapping.add(token, value)
        return token

    def rehydrate(
        self, document: str, mapping: Union[SecretMapping, Mapping[str, str]]
    ) -> str:
        """Put original values back into redacted JSON text."""
        return rehydrate(document, mapping)


def _as_mapping(mapping: Union[SecretMapping, Mapping[str, str]]) -> SecretMapping:
    if isinstance(mapping, SecretMapping):
        return mapping
    return SecretMapping.from_dict(mapping)


def rehydrate(document: str, mapping: Union[SecretMapping, Mapping[str, str]]) -> str:
    """Replace placeholders in JSON text with their original values.

    Only whole tokens are matched. Tokens without a mapping entry stay as
    literal text and unused mapping entries are ignored. Values are escaped
    for the JSON string they land in.
    """
    mapping = _as_mapping(mapping)
    if not mapping:
        return document

    def substitute(match: re.Match) -> str:
        original = mapping.resolve(match.group(0))
        if original is None:
            return match.group(0)
        return json_escape(original)

    return PLACEHOLDER_PATTERN.sub(substitute, document)


def rehydrate_value(data: Any, mapping: Union[SecretMapping, Mapping[str, str]]) -> Any:
    """Recursively restore placeholders in an already parsed document."""
    mapping = _as_mapping(mapping)
    if isinstance(data, str):
        return mapping.expand(data)
    elif isinstance(data, dict):
        return {key: rehydrate_value(value, mapping) for key, value in data.items()}
    elif isinstance(data, list):
        return [rehydrate_value(item, mapping) for item in data]
    else:
        return data


def inspect_placeholders(
    document: str, mapping: Union[SecretMapping, Mapping[str, str]]
) -> PlaceholderUsage:
    """Compare the placeholders in ``document`` against ``mapping``.

    A mapping entry only referenced from inside another entry's value counts
    as used when that outer entry is used.
    """
    mapping = _as_mapping(mapping)
    usage = PlaceholderUsage()
    reachable: set[str] = set()
    pending = find_placeholders(document)

    for token in pending:
        if token not in mapping and token not in usage.unknown:
            usage.unknown.append(token)

    while pending:
        token = pending.pop()
        if token in reachable or token not in mapping:
            continue
        reachable.add(token)
        pending.extend(find_placeholders(mapping.get_original(token) or ""))

    usage.used = [token for token in mapping if token in reachable]
    usage.unused = [token for token in mapping if token not in reachable]
    return usage


def extract(document: JsonDocument, indent: Optional[int] = 2) -> ExtractionResult:
    """One-liner extraction with the default classifier."""
    return SecretRedactor(indent=indent).extract(document)
