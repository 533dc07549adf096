"""Placeholder token grammar shared by extraction and rehydration.

Tokens look like ``{{EMAIL_1}}``, ``{{URL_3}}``, ``{{GUID_2}}`` or
``{{STRING_10}}``. The closing braces delimit the counter, so matching a full
token never confuses ``{{STRING_1}}`` with ``{{STRING_10}}``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class PlaceholderKind(str, Enum):
    """Kinds of hidden values, in extraction order."""

    EMAIL = "EMAIL"
    URL = "URL"
    GUID = "GUID"
    STRING = "STRING"


PLACEHOLDER_PATTERN = re.compile(r"\{\{(EMAIL|URL|GUID|STRING)_([1-9][0-9]*)\}\}")


def format_placeholder(kind: PlaceholderKind, number: int) -> str:
    """Build the token for the ``number``-th value of ``kind``."""
    if number < 1:
        raise ValueError(f"Placeholder numbers start at 1, got {number}")
    return f"{{{{{PlaceholderKind(kind).value}_{number}}}}}"


def is_placeholder(value: str) -> bool:
    """True when the whole value is exactly one placeholder token."""
    return PLACEHOLDER_PATTERN.fullmatch(value) is not None


def find_placeholders(text: str) -> list[str]:
    """Return every token in ``text``, in order of appearance."""
    return [match.group(0) for match in PLACEHOLDER_PATTERN.finditer(text)]


def placeholder_kind(token: str) -> PlaceholderKind | None:
    match = PLACEHOLDER_PATTERN.fullmatch(token)
    if match is None:
        return None
    return PlaceholderKind(match.group(1))


@dataclass
class PlaceholderCounters:
    """Per-kind counters for a single extraction run.

    Tokens listed in ``reserved`` (already present in the input document) are
    never issued; their numbers are skipped.
    """

    email: int = 0
    url: int = 0
    guid: int = 0
    string: int = 0
    reserved: frozenset = field(default_factory=frozenset)

    def next(self, kind: PlaceholderKind) -> str:
        """Advance the counter for ``kind`` and return the new token."""
        attr = PlaceholderKind(kind).value.lower()
        number = getattr(self, attr)
        while True:
            number += 1
            token = format_placeholder(kind, number)
            if token not in self.reserved:
                break
        setattr(self, attr, number)
        return token

    def as_dict(self) -> dict[str, int]:
        """Highest number issued per kind."""
        return {
            PlaceholderKind.EMAIL.value: self.email,
            PlaceholderKind.URL.value: self.url,
            PlaceholderKind.GUID.value: self.guid,
            PlaceholderKind.STRING.value: self.string,
        }

    @property
    def total(self) -> int:
        return self.email + self.url + self.guid + self.string
