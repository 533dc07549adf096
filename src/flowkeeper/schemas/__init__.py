"""Data models for Flowkeeper."""

from .base import CheckResult, SyncOperation, SyncResult

__all__ = [
    "CheckResult",
    "SyncOperation",
    "SyncResult",
]
