"""Filesystem layout and staging helpers for produced artifacts."""

from .storage import StagingArea, StorageLayout, persist_stream

__all__ = ["StagingArea", "StorageLayout", "persist_stream"]
