"""
Local directory source, one ``<flow_id>.json`` file per flow.

Useful offline and in tests; behaves like a remote source that stores the
definition exactly as uploaded.
"""

from pathlib import Path
from typing import Union

from ..exceptions import SourceError
from .base import BaseFlowSource


class FileFlowSource(BaseFlowSource):
    """Definitions stored as JSON files in a directory."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()

    def _path_for(self, flow_id: str) -> Path:
        if not flow_id or "/" in flow_id or "\\" in flow_id or flow_id in (".", ".."):
            raise SourceError(self.get_source_name(), f"Invalid flow id: {flow_id!r}")
        return self.root / f"{flow_id}.json"

    def fetch_definition(self, flow_id: str) -> str:
        path = self._path_for(flow_id)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise SourceError(
                self.get_source_name(), f"Flow {flow_id} not found in {self.root}"
            ) from e
        except OSError as e:
            raise SourceError(self.get_source_name(), str(e)) from e

    def update_definition(self, flow_id: str, definition: str) -> None:
        path = self._path_for(flow_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(definition, encoding="utf-8")
        except OSError as e:
            raise SourceError(self.get_source_name(), str(e)) from e

    @classmethod
    def get_source_name(cls) -> str:
        return "file"
