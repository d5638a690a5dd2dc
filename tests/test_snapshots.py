# tests/test_snapshots.py
"""Tests for the named snapshot registry and its storage backends."""

import json

import pytest

from core.snapshots import (
    JsonFileStorage,
    MemoryStorage,
    PersistenceError,
    SnapshotRegistry,
    decode_snapshots,
)
from core.table import TabularModel

T1 = TabularModel(header=["Status"], rows=[["Open"]])
T2 = TabularModel(header=["Status"], rows=[["Closed"], ["Open"]])


class FailingStorage(MemoryStorage):
    def __init__(self, initial=None):
        super().__init__(initial)
        self.fail = False

    def set(self, key, value):
        if self.fail:
            raise OSError("disk full")
        super().set(key, value)


class UnreadableStorage(MemoryStorage):
    def get(self, key):
        raise RuntimeError("storage locked")


class TestSave:
    def test_save_then_replace(self, registry):
        registry.save("A", T1)
        registry.save("A", T2)
        snapshots = registry.list()
        assert len(snapshots) == 1
        assert snapshots[0].name == "A"
        assert snapshots[0].data == T2

    def test_replace_keeps_position(self, registry):
        registry.save("A", T1)
        registry.save("B", T1)
        registry.save("A", T2)
        assert registry.names() == ["A", "B"]

    def test_writes_whole_collection(self, registry, storage):
        registry.save("A", T1)
        registry.save("B", T2)
        records = json.loads(storage.get("savedDashboards"))
        assert [r["name"] for r in records] == ["A", "B"]
        assert records[1]["data"] == {"header": ["Status"], "rows": [["Closed"], ["Open"]]}
        assert records[0]["savedAt"] == "01/02/2026, 10:00:00 AM"

    def test_saved_copy_is_detached(self, registry):
        table = TabularModel(header=["Status"], rows=[["Open"]])
        registry.save("A", table)
        table.rows[0][0] = "Mutated"
        loaded = registry.get("A")
        assert loaded.data.rows == [["Open"]]
        loaded.data.rows.append(["Extra"])
        assert registry.get("A").data.row_count == 1

    def test_blank_name_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.save("   ", T1)
        assert len(registry) == 0

    @pytest.mark.parametrize("name", [" A", "A ", "\tA"])
    def test_surrounding_whitespace_rejected(self, registry, name):
        with pytest.raises(ValueError):
            registry.save(name, T1)
        assert len(registry) == 0
        assert registry.get("A") is None

    def test_names_match_exactly(self, registry):
        registry.save("A", T1)
        assert registry.get("A ") is None
        assert registry.delete(" A") is False
        assert registry.names() == ["A"]


    def test_failed_write_leaves_memory_unchanged(self):
        storage = FailingStorage()
        registry = SnapshotRegistry(storage)
        registry.save("A", T1)
        storage.fail = True
        with pytest.raises(PersistenceError):
            registry.save("A", T2)
        with pytest.raises(PersistenceError):
            registry.save("B", T2)
        assert registry.names() == ["A"]
        assert registry.get("A").data == T1


class TestDelete:
    def test_delete_missing_is_noop(self, registry, storage):
        assert registry.delete("missing") is False
        assert registry.list() == []
        assert storage.get("savedDashboards") is None

    def test_delete_rewrites_storage(self, registry, storage):
        registry.save("A", T1)
        registry.save("B", T2)
        assert registry.delete("A") is True
        assert "A" not in registry
        assert [r["name"] for r in json.loads(storage.get("savedDashboards"))] == ["B"]

    def test_failed_delete_keeps_snapshot(self):
        storage = FailingStorage()
        registry = SnapshotRegistry(storage)
        registry.save("A", T1)
        storage.fail = True
        with pytest.raises(PersistenceError):
            registry.delete("A")
        assert "A" in registry


class TestLoad:
    def test_reload_from_storage(self, registry, storage):
        registry.save("A", T1)
        reopened = SnapshotRegistry(storage)
        assert reopened.get("A").data == T1
        assert reopened.get("B") is None

    @pytest.mark.parametrize("payload", ["not json", "{}", '[{"name": "x"}]', '[{"data": []}]'])
    def test_corrupt_storage_is_empty(self, payload):
        registry = SnapshotRegistry(MemoryStorage({"savedDashboards": payload}))
        assert registry.list() == []

    def test_unreadable_storage_starts_empty(self):
        storage = UnreadableStorage()
        registry = SnapshotRegistry(storage)
        assert registry.list() == []
        registry.save("A", T1)
        assert json.loads(storage.data["savedDashboards"])[0]["name"] == "A"

    def test_matrix_records_accepted(self):

        payload = json.dumps([{"name": "Old", "data": [["Status"], ["Open"], []], "savedAt": "1/1/2025"}])
        snapshots = decode_snapshots(payload)
        assert snapshots[0].data.header == ["Status"]
        assert snapshots[0].data.rows == [["Open"], []]
        assert snapshots[0].saved_at == "1/1/2025"

    def test_custom_key(self, storage):
        registry = SnapshotRegistry(storage, key="other")
        registry.save("A", T1)
        assert storage.get("savedDashboards") is None
        assert storage.get("other") is not None


class TestJsonFileStorage:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        storage = JsonFileStorage(path)
        assert storage.get("k") is None
        storage.set("k", "v")
        storage.set("j", "w")
        assert JsonFileStorage(path).get("k") == "v"
        assert json.loads(path.read_text()) == {"k": "v", "j": "w"}

    def test_unreadable_file_is_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{broken")
        assert JsonFileStorage(path).get("k") is None

    def test_write_failure_raises(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        storage = JsonFileStorage(blocker / "store.json")
        with pytest.raises(PersistenceError):
            storage.set("k", "v")

    def test_registry_on_disk(self, tmp_path):
        path = tmp_path / "snapshots.json"
        SnapshotRegistry(JsonFileStorage(path)).save("A", T2)
        assert SnapshotRegistry(JsonFileStorage(path)).get("A").data == T2
