"""Built-in check rules."""

from .format_rules import JsonSyntaxRule
from .leak_rules import LeakedValueRule
from .placeholder_rules import (
    MalformedPlaceholderRule,
    RemovedPlaceholderRule,
    UnknownPlaceholderRule,
)


def get_all_default_rules():
    """Instantiate all built-in rules with default configuration."""
    return [
        # Format
        JsonSyntaxRule(),
        # Placeholders
        UnknownPlaceholderRule(),
        MalformedPlaceholderRule(),
        RemovedPlaceholderRule(),
        # Leaks
        LeakedValueRule(),
    ]
