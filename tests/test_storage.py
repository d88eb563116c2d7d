"""
Output Storage Tests
====================

Recency list, storage backends, the capped output store and the history
display helpers.
"""

import json
import re

import pytest

from ascii_video.models.output import OutputRecord, generate_id
from ascii_video.storage.backends import FileBackend, MemoryBackend, StorageError, StorageQuotaError
from ascii_video.storage.formatting import format_date, format_size
from ascii_video.storage.output_store import MAX_OUTPUTS, STORAGE_KEY, OutputStore
from ascii_video.storage.recent import RecentList


class CountingBackend(MemoryBackend):
    """MemoryBackend that counts writes."""

    def __init__(self):
        super().__init__()
        self.writes = 0

    def set_item(self, key, value):
        self.writes += 1
        super().set_item(key, value)


class TestRecentList:
    """Tests for the bounded most-recent-first list."""

    def test_push_front_orders_newest_first(self):
        recent = RecentList(capacity=3)
        for item in "abc":
            recent.push_front(item)

        assert recent.to_list() == ["c", "b", "a"]

    def test_overflow_evicts_oldest(self):
        """Verify the back of the list is dropped on overflow."""
        recent = RecentList(capacity=3, items=["c", "b", "a"])

        evicted = recent.push_front("d")

        assert evicted == ["a"]
        assert recent.to_list() == ["d", "c", "b"]
        assert recent.evicted_count == 1

    def test_initial_overflow_is_trimmed(self):
        recent = RecentList(capacity=2, items=[1, 2, 3, 4])

        assert recent.to_list() == [1, 2]
        assert recent.metrics() == {"size": 2, "capacity": 2, "evicted_count": 2}

    def test_remove_where(self):
        recent = RecentList(capacity=5, items=[1, 2, 1, 3])

        assert recent.remove_where(lambda item: item == 1) == 2
        assert recent.to_list() == [2, 3]

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            RecentList(capacity=0)


class TestMemoryBackend:
    """Tests for the in-memory backend."""

    def test_set_get_remove(self):
        backend = MemoryBackend()
        backend.set_item("k", "v")

        assert backend.get_item("k") == "v"
        backend.remove_item("k")
        assert backend.get_item("k") is None
        backend.remove_item("k")

    def test_quota_exceeded(self):
        """Verify writes over quota fail and leave the old value."""
        backend = MemoryBackend(quota_bytes=10)
        backend.set_item("k", "small")

        with pytest.raises(StorageQuotaError):
            backend.set_item("k", "x" * 11)
        assert backend.get_item("k") == "small"


class TestFileBackend:
    """Tests for the file-per-key backend."""

    def test_round_trip(self, tmp_path):
        backend = FileBackend(tmp_path / "store")
        backend.set_item("outputs", '["x"]')

        assert backend.get_item("outputs") == '["x"]'
        assert (tmp_path / "store" / "outputs.json").exists()

    def test_rewrite_leaves_no_temp_files(self, tmp_path):
        backend = FileBackend(tmp_path)
        backend.set_item("outputs", "1")
        backend.set_item("outputs", "2")

        assert backend.get_item("outputs") == "2"
        assert [p.name for p in tmp_path.iterdir()] == ["outputs.json"]

    def test_absent_key(self, tmp_path):
        assert FileBackend(tmp_path).get_item("missing") is None

    def test_remove(self, tmp_path):
        backend = FileBackend(tmp_path)
        backend.set_item("outputs", "1")
        backend.remove_item("outputs")
        backend.remove_item("outputs")

        assert backend.get_item("outputs") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", ""])
    def test_unsafe_key_rejected(self, tmp_path, key):
        with pytest.raises(ValueError):
            FileBackend(tmp_path).get_item(key)

    def test_unreadable_key_raises(self, tmp_path):
        """Verify read failures surface as StorageError."""
        (tmp_path / "outputs.json").mkdir()

        with pytest.raises(StorageError):
            FileBackend(tmp_path).get_item("outputs")


class TestOutputStore:
    """Tests for the capped output history."""

    def test_empty_store(self, memory_store):
        assert memory_store.get_all() == []

    def test_save_prepends(self, memory_store, make_record):
        memory_store.save(make_record(0))
        memory_store.save(make_record(1))

        assert [r.id for r in memory_store.get_all()] == ["rec1", "rec0"]

    def test_capacity_keeps_most_recent(self, memory_store, make_record):
        """Verify the store never holds more than 20 records, newest first."""
        for i in range(25):
            assert memory_store.save(make_record(i))

        records = memory_store.get_all()
        assert len(records) == MAX_OUTPUTS
        assert [r.id for r in records] == [f"rec{i}" for i in range(24, 4, -1)]

    def test_custom_capacity(self, make_record):
        store = OutputStore(MemoryBackend(), capacity=2)
        for i in range(3):
            store.save(make_record(i))

        assert [r.id for r in store.get_all()] == ["rec2", "rec1"]

    def test_persisted_wire_form(self, memory_backend, memory_store, make_record):
        """Verify the blob is a JSON array of records with camelCase frameCount."""
        memory_store.save(make_record(0))

        blob = json.loads(memory_backend.get_item(STORAGE_KEY))
        assert isinstance(blob, list)
        assert blob[0]["frameCount"] == 120
        assert blob[0]["data"] == "H4sIAAAAAAAAAw=="

    def test_get_by_id(self, memory_store, make_record):
        memory_store.save(make_record(0))
        memory_store.save(make_record(1))

        assert memory_store.get_by_id("rec0").filename == make_record(0).filename
        assert memory_store.get_by_id("nope") is None

    def test_delete_removes_all_matches(self, memory_backend, memory_store, make_record):
        """Verify every record with the id is removed."""
        duplicate = make_record(0).to_wire()
        memory_backend.set_item(STORAGE_KEY, json.dumps([duplicate, make_record(1).to_wire(), duplicate]))

        assert memory_store.delete("rec0")
        assert [r.id for r in memory_store.get_all()] == ["rec1"]

    def test_delete_unknown_id_is_noop(self, make_record):
        """Verify deleting an unknown id succeeds without rewriting storage."""
        backend = CountingBackend()
        store = OutputStore(backend)
        store.save(make_record(0))

        assert store.delete("unknown")
        assert backend.writes == 1
        assert len(store.get_all()) == 1

    @pytest.mark.parametrize("blob", ["not json", '{"a": 1}', '[{"id": "x"}]', "", "null"])
    def test_corrupt_storage_reads_as_empty(self, memory_backend, memory_store, blob):
        """Verify unreadable blobs degrade to no data."""
        memory_backend.set_item(STORAGE_KEY, blob)

        assert memory_store.get_all() == []

    def test_save_after_corruption(self, memory_backend, memory_store, make_record):
        """Verify a corrupt blob is replaced by the next save."""
        memory_backend.set_item(STORAGE_KEY, "{{{ garbage")

        assert memory_store.save(make_record(0))
        assert [r.id for r in memory_store.get_all()] == ["rec0"]

    def test_21st_save_evicts_oldest(self, memory_store, make_record):
        for i in range(MAX_OUTPUTS):
            memory_store.save(make_record(i))
        assert memory_store.get_by_id("rec0") is not None

        memory_store.save(make_record(MAX_OUTPUTS))

        assert memory_store.get_by_id("rec0") is None
        assert memory_store.get_by_id("rec1") is not None
        assert memory_store.get_all()[0].id == f"rec{MAX_OUTPUTS}"

    def test_unreadable_backend_reads_as_empty(self, tmp_path):
        (tmp_path / f"{STORAGE_KEY}.json").mkdir()

        assert OutputStore(FileBackend(tmp_path)).get_all() == []

    def test_quota_failure_returns_false(self, make_record):
        """Verify a failed write reports False and keeps prior contents."""
        backend = MemoryBackend(quota_bytes=1200)
        store = OutputStore(backend)
        assert store.save(make_record(0))

        big = make_record(1, data="A" * 2000)
        assert store.save(big) is False
        assert [r.id for r in store.get_all()] == ["rec0"]

    def test_file_backed_store_persists(self, tmp_path, make_record):
        OutputStore(FileBackend(tmp_path)).save(make_record(0))

        assert OutputStore(FileBackend(tmp_path)).get_by_id("rec0") is not None

    def test_invalid_capacity(self):
        with pytest.raises(ValueError):
            OutputStore(MemoryBackend(), capacity=0)


class TestOutputRecord:
    """Tests for record ids and serialization."""

    def test_summary_omits_payload(self, make_record):
        summary = make_record(0).summary()

        assert "data" not in summary
        assert summary["frameCount"] == 120

    def test_accepts_camel_case(self, make_record):
        wire = make_record(0).to_wire()

        assert OutputRecord.model_validate(wire) == make_record(0)

    def test_generate_id_shape(self):
        """Verify ids are base-36 time plus nine random characters."""
        record_id = generate_id(35)

        assert record_id[0] == "z"
        assert len(record_id) == 10
        assert re.fullmatch(r"[0-9a-z]+", record_id)

    def test_generate_id_is_practically_unique(self):
        ids = {generate_id(1792316712345) for _ in range(200)}

        assert len(ids) == 200


class TestFormatting:
    """Tests for history display helpers."""

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (512, "512 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (2 * 1024 * 1024, "2.0 MB"),
    ])
    def test_format_size(self, size, expected):
        assert format_size(size) == expected

    def test_format_date(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}", format_date(1792316712345))
