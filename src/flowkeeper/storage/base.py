"""
Base storage abstraction for secret mappings.

Defines the interface every mapping store must implement. A store holds one
SecretMapping per document, keyed by the document identity: the canonical
absolute path of the local file that holds the redacted definition.

Key concepts:
- load() never fails. A missing or corrupt store is treated as empty, since
  the store is advisory state and not a precondition for pulling.
- save() is atomic and raises StoreWriteError on failure. A crash mid-write
  must leave either the previous or the new content on disk, so mappings
  belonging to other documents are never lost.
- get/put/remove are implemented once here on top of load/save.

Usage pattern:
    from flowkeeper.storage import JsonMappingStore

    store = JsonMappingStore("~/.flowkeeper/secrets.json")
    store.put("flows/approval.json", result.mapping)
    mapping = store.get("flows/approval.json")
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..privacy.redactor import SecretMapping

PathLike = Union[str, Path]


def document_id(path: PathLike) -> str:
    """Stable identity of a local document: its canonical absolute path."""
    return str(Path(path).expanduser().resolve())


class BaseMappingStore(ABC):
    """
    Abstract base class for mapping stores.

    Subclass contract:
        - load() returns an empty dict instead of raising on missing/corrupt data
        - save() replaces the whole store atomically
        - save() raises StoreWriteError with the underlying cause on failure
    """

    @abstractmethod
    def load(self) -> Dict[str, SecretMapping]:
        """
        Load every mapping in the store.

        Returns:
            Dict of document id -> SecretMapping. Empty when the store does
            not exist yet or cannot be parsed.
        """
        pass

    @abstractmethod
    def save(self, mappings: Dict[str, SecretMapping]) -> None:
        """
        Replace the store content with ``mappings``.

        Raises:
            StoreWriteError: If the store could not be written.
        """
        pass

    @classmethod
    @abstractmethod
    def get_backend_name(cls) -> str:
        """Get the backend identifier string, e.g. "json"."""
        pass

    # --- Per-document helpers --------------------------------------------

    def get(self, path: PathLike) -> Optional[SecretMapping]:
        """Mapping for the document at ``path``, or None if it was never extracted."""
        return self.load().get(document_id(path))

    def put(self, path: PathLike, mapping: SecretMapping) -> str:
        """
        Store ``mapping`` for the document at ``path``, replacing any previous one.

        Returns:
            The document id the mapping was stored under.
        """
        key = document_id(path)
        mappings = self.load()
        mappings[key] = mapping
        self.save(mappings)
        return key

    def remove(self, path: PathLike) -> bool:
        """Drop the mapping for ``path``. Returns False if there was none."""
        key = document_id(path)
        mappings = self.load()
        if key not in mappings:
            return False
        del mappings[key]
        self.save(mappings)
        return True

    def list_documents(self) -> List[str]:
        return sorted(self.load())
