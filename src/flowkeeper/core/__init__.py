"""Sync orchestration between definition sources and local redacted files."""

from .sync import FlowSync, pull, push

__all__ = ["FlowSync", "pull", "push"]
