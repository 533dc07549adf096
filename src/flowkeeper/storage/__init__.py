"""Persistent storage for secret mappings."""

from .atomic import atomic_write_text
from .base import BaseMappingStore, document_id
from .json_store import JsonMappingStore, load_store, save_store

__all__ = [
    "atomic_write_text",
    "BaseMappingStore",
    "JsonMappingStore",
    "document_id",
    "load_store",
    "save_store",
]
