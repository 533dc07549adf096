"""
Configuration for Flowkeeper.

Settings come from keyword overrides first, then ``FLOWKEEPER_*`` environment
variables (a ``.env`` file is loaded by the CLI), then the defaults below.
"""

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

DEFAULT_HOME = Path("~/.flowkeeper")
DEFAULT_STORE_PATH = DEFAULT_HOME / "secrets.json"
DEFAULT_BACKUP_DIR = DEFAULT_HOME / "backups"

ENV_PREFIX = "FLOWKEEPER_"


class Settings(BaseModel):
    """Runtime settings for the sync orchestrator and CLI."""

    store_path: Path = Field(DEFAULT_STORE_PATH, description="Mapping store file")
    backup_dir: Path = Field(
        DEFAULT_BACKUP_DIR, description="Where remote definitions are saved before a push"
    )
    source: str = Field("http", description="Definition source: http or file")
    source_root: Optional[Path] = Field(None, description="Directory for the file source")
    api_base_url: Optional[str] = None
    api_token: Optional[str] = Field(None, repr=False)
    api_version: Optional[str] = None
    indent: Optional[int] = Field(2, ge=0)
    retries: int = Field(3, ge=1, le=10)
    retry_delay: float = Field(0.5, ge=0.0)
    timeout: float = Field(30.0, gt=0.0)

    def expanded_store_path(self) -> Path:
        return self.store_path.expanduser()

    def expanded_backup_dir(self) -> Path:
        return self.backup_dir.expanduser()


def _from_env() -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name in Settings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw != "":
            values[name] = raw
    return values


def load_settings(**overrides: Any) -> Settings:
    """
    Build Settings from environment variables plus explicit overrides.

    Overrides set to None are ignored so CLI flags that were not given fall
    back to the environment.

    Raises:
        pydantic.ValidationError: If a value cannot be converted
    """
    values = _from_env()
    values.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**values)


__all__ = [
    "DEFAULT_BACKUP_DIR",
    "DEFAULT_STORE_PATH",
    "Settings",
    "load_settings",
]
