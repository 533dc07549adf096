"""Base abstractions for pre-push check rules."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from ..privacy.redactor import SecretMapping


class RuleSeverity(str, Enum):
    """Severity level for a rule finding."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class RuleFinding:
    """A single finding from a check rule.

    Messages name placeholders, never the values behind them.
    """

    rule_name: str
    severity: RuleSeverity
    message: str
    placeholder: Optional[str] = None


class BaseCheckRule(ABC):
    """Abstract base class for all check rules."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this rule."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this rule checks."""
        ...

    @abstractmethod
    def validate(self, document: str, mapping: SecretMapping) -> List[RuleFinding]:
        """
        Run this rule against an edited, still redacted document.

        Args:
            document: The edited JSON text, before rehydration
            mapping: The secret mapping recorded when the document was extracted

        Returns:
            List of findings (empty list means rule passed)
        """
        ...
