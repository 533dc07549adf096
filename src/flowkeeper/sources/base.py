"""
Base abstraction for workflow definition sources.

A source fetches and uploads workflow definitions as JSON text. It knows
nothing about redaction: the sync orchestrator only ever hands it
value-complete definitions.
"""

from abc import ABC, abstractmethod


class BaseFlowSource(ABC):
    """Abstract base class for definition sources."""

    @abstractmethod
    def fetch_definition(self, flow_id: str) -> str:
        """
        Fetch the current definition of a flow.

        Args:
            flow_id: Identifier of the flow at the source

        Returns:
            The definition as JSON text

        Raises:
            SourceError: If the definition could not be fetched
        """
        pass

    @abstractmethod
    def update_definition(self, flow_id: str, definition: str) -> None:
        """
        Replace the definition of a flow.

        Args:
            flow_id: Identifier of the flow at the source
            definition: Value-complete definition as JSON text

        Raises:
            SourceError: If the upload failed
        """
        pass

    @classmethod
    @abstractmethod
    def get_source_name(cls) -> str:
        """Get the source name (e.g., 'http', 'file')."""
        pass

    def close(self) -> None:
        """Release resources held by the source."""
