"""
Flowkeeper - Edit workflow definitions without exposing their secrets

Pull a workflow definition into a local file with every sensitive value
replaced by a placeholder, let anyone (or anything) edit it, then push it
back with the original values restored.
"""

__version__ = "0.1.0"

import sys

if sys.version_info < (3, 10):
    raise RuntimeError("Flowkeeper requires Python 3.10 or higher")

from .config import Settings, load_settings
from .core.sync import FlowSync, pull, push
from .exceptions import (
    DocumentParseError,
    FlowkeeperError,
    MappingNotFoundError,
    SourceError,
    StoreWriteError,
)
from .privacy import (
    Classification,
    ExtractionResult,
    PlaceholderKind,
    SecretMapping,
    SecretRedactor,
    ValueClassifier,
    classify,
    extract,
    rehydrate,
)
from .schemas.base import CheckResult, SyncOperation, SyncResult
from .sources import (
    SOURCES,
    BaseFlowSource,
    FileFlowSource,
    HttpFlowSource,
    get_source,
    list_sources,
)
from .storage import BaseMappingStore, JsonMappingStore, document_id

__all__ = [
    "__version__",
    # Main API
    "FlowSync",
    "pull",
    "push",
    # Engine
    "extract",
    "rehydrate",
    "classify",
    "Classification",
    "ExtractionResult",
    "PlaceholderKind",
    "SecretMapping",
    "SecretRedactor",
    "ValueClassifier",
    # Result types
    "CheckResult",
    "SyncOperation",
    "SyncResult",
    # Storage
    "BaseMappingStore",
    "JsonMappingStore",
    "document_id",
    # Sources
    "SOURCES",
    "BaseFlowSource",
    "FileFlowSource",
    "HttpFlowSource",
    "get_source",
    "list_sources",
    # Config
    "Settings",
    "load_settings",
    # Errors
    "FlowkeeperError",
    "DocumentParseError",
    "MappingNotFoundError",
    "SourceError",
    "StoreWriteError",
]
