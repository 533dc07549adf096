"""Exception hierarchy for Flowkeeper.

Engine functions raise these typed errors; the sync orchestrator turns them
into failed ``SyncResult`` objects using the ``code`` attribute.

Exception Hierarchy:
    FlowkeeperError (base)
    ├── DocumentParseError (input is not valid JSON)
    ├── StoreWriteError (mapping store could not be persisted)
    ├── MappingNotFoundError (file was never extracted by this tool)
    └── SourceError (remote definition fetch/upload failed)
"""

from typing import Optional


class FlowkeeperError(Exception):
    """Base exception for all Flowkeeper errors."""

    code = "flowkeeper_error"


class DocumentParseError(FlowkeeperError):
    """Raised when a document handed to the engine is not valid JSON."""

    code = "document_parse_error"

    def __init__(self, details: str, source: Optional[str] = None) -> None:
        self.details = details
        self.source = source

        message = f"Document is not valid JSON: {details}"
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class StoreWriteError(FlowkeeperError):
    """Raised when the mapping store cannot be written.

    Fatal for the current pull: without a persisted mapping a later push
    cannot restore the hidden values. The underlying ``OSError`` is chained
    as ``__cause__``.
    """

    code = "store_write_error"

    def __init__(self, store_path: str, reason: str) -> None:
        self.store_path = store_path
        self.reason = reason
        super().__init__(f"Could not write mapping store {store_path}: {reason}")


class MappingNotFoundError(FlowkeeperError):
    """Raised when a local file has no entry in the mapping store."""

    code = "mapping_not_found"

    def __init__(self, document_id: str, store_path: Optional[str] = None) -> None:
        self.document_id = document_id
        self.store_path = store_path

        message = (
            f"No secret mapping found for {document_id}. "
            "This file was never extracted by flowkeeper; run 'flowkeeper pull' "
            "(or 'flowkeeper extract') to create it before pushing."
        )
        if store_path:
            message += f" (store: {store_path})"
        super().__init__(message)


class SourceError(FlowkeeperError):
    """Raised when a definition source fails to fetch or upload.

    Attributes:
        source_name: Name of the source that failed
        details: Error details from the transport or remote API
        status_code: HTTP status code when one was received
        retryable: Whether retrying the call may succeed
    """

    code = "source_error"

    def __init__(
        self,
        source_name: str,
        details: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ) -> None:
        self.source_name = source_name
        self.details = details
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(f"Definition source '{source_name}' error: {details}")
