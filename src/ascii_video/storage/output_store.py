"""
Output Store
============

Capacity-bounded, recency-ordered history of export records.

Storage Model:
    One JSON array of OutputRecords under a single well-known key.
    Every mutation rewrites the entire blob (capacity is small and
    mutations are rare).

Failure Model:
    - Reads degrade to "no data": an absent, unreadable or unparseable
      blob yields an empty list, never an exception
    - Writes return False on storage failure (quota, I/O); callers keep
      the already-produced artifact and surface a warning
"""

import json
import logging
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from ascii_video.models.output import OutputRecord
from ascii_video.storage.backends import StorageBackend, StorageError
from ascii_video.storage.recent import RecentList


logger = logging.getLogger(__name__)


STORAGE_KEY = "ascii_video_outputs"
MAX_OUTPUTS = 20

_records_adapter = TypeAdapter(List[OutputRecord])


class OutputStore:
    """
    Persisted most-recent-first list of OutputRecords.

    Attributes:
        backend: Blob storage backend
        key: Storage key of the serialized list
        capacity: Maximum number of records kept

    Example:
        store = OutputStore(FileBackend("./data"))

        if not store.save(record):
            logger.warning("Output not saved to history")

        latest = store.get_all()[0]
        store.delete(latest.id)
    """

    def __init__(
        self,
        backend: StorageBackend,
        key: str = STORAGE_KEY,
        capacity: int = MAX_OUTPUTS,
    ) -> None:
        """
        Initialize output store.

        Args:
            backend: Blob storage backend
            key: Storage key for the record list
            capacity: Maximum records kept. Must be >= 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self.backend = backend
        self.key = key
        self.capacity = capacity

    def get_all(self) -> List[OutputRecord]:
        """
        Load all records, most recent first.

        Returns:
            Stored records, or [] if storage is absent or corrupt.
        """
        try:
            raw = self.backend.get_item(self.key)
        except StorageError as e:
            logger.error(f"Failed to load outputs from storage: {e}")
            return []

        if not raw:
            return []

        try:
            return _records_adapter.validate_python(json.loads(raw))
        except json.JSONDecodeError as e:
            logger.error(f"Stored outputs are not valid JSON, ignoring: {e}")
            return []
        except ValidationError as e:
            logger.error(
                f"Stored outputs failed validation, ignoring: {e.error_count()} error(s)"
            )
            return []

    def save(self, record: OutputRecord) -> bool:
        """
        Prepend a record, evicting the oldest beyond capacity.

        Returns:
            True if the list was written, False on storage failure.
        """
        recent = RecentList(self.capacity, self.get_all())
        evicted = recent.push_front(record)
        for old in evicted:
            logger.info(f"Evicted output {old.id} ({old.filename})")

        try:
            self._write(recent.to_list())
        except StorageError as e:
            logger.error(f"Failed to save output to storage: {e}")
            return False

        logger.info(f"Saved output {record.id} ({record.filename}, {record.size} bytes)")
        return True

    def delete(self, output_id: str) -> bool:
        """
        Remove every record with the given id.

        An unknown id is a no-op, not an error.

        Returns:
            True on success, False on storage failure.
        """
        recent = RecentList(self.capacity, self.get_all())
        removed = recent.remove_where(lambda record: record.id == output_id)
        if removed == 0:
            return True

        try:
            self._write(recent.to_list())
        except StorageError as e:
            logger.error(f"Failed to delete output from storage: {e}")
            return False

        logger.info(f"Deleted output {output_id}")
        return True

    def get_by_id(self, output_id: str) -> Optional[OutputRecord]:
        """Return the first record with the given id, or None."""
        for record in self.get_all():
            if record.id == output_id:
                return record
        return None

    def _write(self, records: List[OutputRecord]) -> None:
        blob = json.dumps([record.to_wire() for record in records])
        self.backend.set_item(self.key, blob)
