"""Document format rules."""

import json
from typing import List

from ...privacy.redactor import SecretMapping, load_json
from ..base import BaseCheckRule, RuleFinding, RuleSeverity


class JsonSyntaxRule(BaseCheckRule):
    """Check that the edited document is still valid JSON."""

    @property
    def name(self) -> str:
        return "json_syntax_valid"

    @property
    def description(self) -> str:
        return "Verifies that the edited document parses as JSON"

    def validate(self, document: str, mapping: SecretMapping) -> List[RuleFinding]:
        try:
            load_json(document)
        except json.JSONDecodeError as e:
            message = f"{e.msg} at line {e.lineno} column {e.colno}"
        except ValueError as e:
            message = str(e)
        else:
            return []
        return [
            RuleFinding(
                rule_name=self.name,
                severity=RuleSeverity.ERROR,
                message=f"Document is not valid JSON: {message}",
            )
        ]
