"""JSON file mapping store with atomic writes.

On-disk format is a single JSON object:

    {
      "/abs/path/to/flow.json": {"{{EMAIL_1}}": "bob@example.com", ...},
      ...
    }
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict

from ..exceptions import StoreWriteError
from ..privacy.redactor import SecretMapping
from .atomic import atomic_write_text
from .base import BaseMappingStore, PathLike

logger = logging.getLogger(__name__)

GITIGNORE_HEADER = "# flowkeeper secret store, never commit"


def load_store(store_path: PathLike) -> Dict[str, SecretMapping]:
    """Read every mapping from ``store_path``.

    Missing, unreadable or corrupt stores yield an empty dict. Individual
    malformed entries are skipped.
    """
    path = Path(store_path).expanduser()
    if not path.exists():
        logger.debug("Mapping store %s does not exist yet", path)
        return {}

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable mapping store %s: %s", path, e)
        return {}

    if not isinstance(raw, dict):
        logger.warning("Ignoring mapping store %s: top level is not an object", path)
        return {}

    mappings: Dict[str, SecretMapping] = {}
    for key, entry in raw.items():
        if not isinstance(entry, dict) or not all(
            isinstance(value, str) for value in entry.values()
        ):
            logger.warning("Skipping malformed mapping store entry for %s", key)
            continue
        try:
            mappings[key] = SecretMapping.from_dict(entry)
        except ValueError as e:
            logger.warning("Skipping mapping store entry for %s: %s", key, e)
    return mappings


def save_store(store_path: PathLike, mappings: Dict[str, SecretMapping]) -> None:
    """Atomically replace the content of ``store_path`` with ``mappings``.

    The data is written to a temporary file in the same directory, flushed and
    fsynced, then moved over the store with ``os.replace``.

    Raises:
        StoreWriteError: If any step fails. The previous store is left intact.
    """
    destination = Path(store_path).expanduser()
    payload = json.dumps(
        {key: mapping.to_dict() for key, mapping in mappings.items()},
        indent=2,
        sort_keys=True,
    )

    try:
        atomic_write_text(destination, payload)
    except OSError as e:
        raise StoreWriteError(str(destination), str(e)) from e

    logger.debug("Saved %d mappings to %s", len(mappings), destination)
    _ensure_gitignore(destination)


def _ensure_gitignore(store_file: Path) -> None:
    """Keep the store file (and its temp files) out of version control."""
    gitignore = store_file.parent / ".gitignore"
    patterns = [store_file.name, f"{store_file.name}*.tmp"]
    try:
        existing = (
            gitignore.read_text(encoding="utf-8").splitlines()
            if gitignore.exists()
            else []
        )
        missing = [p for p in patterns if p not in existing]
        if not missing:
            return
        lines = existing + ([] if existing else [GITIGNORE_HEADER]) + missing
        gitignore.write_text("\n".join(lines) + "\n", encoding="utf-8")
    except OSError as e:
        logger.warning("Could not update %s: %s", gitignore, e)


class JsonMappingStore(BaseMappingStore):
    """Mapping store backed by a single JSON file."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Dict[str, SecretMapping]:
        return load_store(self.path)

    def save(self, mappings: Dict[str, SecretMapping]) -> None:
        save_store(self.path, mappings)

    @classmethod
    def get_backend_name(cls) -> str:
        return "json"

    def __repr__(self) -> str:
        return f"JsonMappingStore({str(self.path)!r})"
