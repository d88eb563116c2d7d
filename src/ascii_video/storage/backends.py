"""
Storage Backends
================

Key/value blob storage used by the output store.

Each key holds one serialized text blob. Every write replaces the whole
blob; there is no partial update.

Backends:
    - FileBackend: one file per key under a directory, atomic rewrite
    - MemoryBackend: in-process dict with an optional byte quota

Both raise StorageError subclasses on failure. Callers at the store
boundary decide how to degrade.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union


logger = logging.getLogger(__name__)


_SAFE_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class StorageError(Exception):
    """Raised when the underlying storage cannot be read or written."""
    pass


class StorageQuotaError(StorageError):
    """Raised when a write would exceed the storage quota."""
    pass


class StorageBackend(Protocol):
    """
    Protocol for blob storage.

    Implementations store one text value per key.
    """

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None if the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""
        ...

    def remove_item(self, key: str) -> None:
        """Remove key. Absent keys are ignored."""
        ...


def _check_key(key: str) -> str:
    if not _SAFE_KEY_RE.match(key):
        raise ValueError(f"Invalid storage key: {key!r}")
    return key


class FileBackend:
    """
    File-per-key storage.

    Writes go to a temporary file in the same directory which is then
    renamed over the target, so readers see either the old or the new
    blob, never a partial one.

    Attributes:
        directory: Directory holding the key files
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        """
        Initialize file backend.

        Args:
            directory: Directory for key files (created on first write)
        """
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{_check_key(key)}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}")

    def set_item(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageError(f"Failed to write {path}: {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.remove(tmp_name)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}")


class MemoryBackend:
    """
    In-memory storage with an optional quota.

    Attributes:
        quota_bytes: Maximum total UTF-8 size of all values (None = unlimited)
    """

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self.quota_bytes = quota_bytes
        self._data: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            others = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            needed = others + len(value.encode("utf-8"))
            if needed > self.quota_bytes:
                raise StorageQuotaError(
                    f"Quota exceeded: {needed} bytes > {self.quota_bytes} bytes"
                )
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)
