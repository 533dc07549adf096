"""
Workflow definition sources.

Supported sources:
- http (REST API, via httpx)
- file (local directory of <flow_id>.json files)
"""

from typing import Type

from .base import BaseFlowSource
from .http import HttpFlowSource
from .local import FileFlowSource

SOURCES: dict[str, Type[BaseFlowSource]] = {
    "http": HttpFlowSource,
    "file": FileFlowSource,
}

DEFAULT_SOURCE = "http"


def get_source(name: str = DEFAULT_SOURCE, **kwargs) -> BaseFlowSource:
    """
    Get an initialized definition source by name.

    Args:
        name: Source name ('http' or 'file')
        **kwargs: Passed to the source constructor

    Returns:
        Initialized source instance

    Raises:
        ValueError: If the source name is not recognized
    """
    if name not in SOURCES:
        raise ValueError(f"Unknown source: {name}. Available sources: {list(SOURCES)}")
    return SOURCES[name](**kwargs)


def list_sources() -> list[str]:
    """List all available sources."""
    return list(SOURCES.keys())


__all__ = [
    "BaseFlowSource",
    "FileFlowSource",
    "HttpFlowSource",
    "SOURCES",
    "DEFAULT_SOURCE",
    "get_source",
    "list_sources",
]
