"""
Storage Module
==============

Persisted history of exports.

This module provides:
    - RecentList: Fixed-capacity most-recent-first list (drops oldest)
    - FileBackend / MemoryBackend: Key/value blob storage
    - OutputStore: Capped, recency-ordered OutputRecord history

Example:
    from ascii_video.storage import FileBackend, OutputStore

    store = OutputStore(FileBackend("./data"), capacity=20)
    store.save(record)
    print([r.filename for r in store.get_all()])
"""

from ascii_video.storage.recent import RecentList
from ascii_video.storage.backends import (
    FileBackend,
    MemoryBackend,
    StorageBackend,
    StorageError,
    StorageQuotaError,
)
from ascii_video.storage.output_store import MAX_OUTPUTS, STORAGE_KEY, OutputStore
from ascii_video.storage.formatting import format_date, format_size


__all__ = [
    "RecentList",
    "StorageBackend",
    "FileBackend",
    "MemoryBackend",
    "StorageError",
    "StorageQuotaError",
    "OutputStore",
    "STORAGE_KEY",
    "MAX_OUTPUTS",
    "format_size",
    "format_date",
]
