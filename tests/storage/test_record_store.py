"""RecordStore and StorageContainer behaviour over both durable media."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path

import pytest

from storage.container import StorageContainer
from storage.models import ChangeAction, EntityType, Note, StoredChange
from storage.providers.memory import InMemoryMedium
from storage.providers.sqlite.medium import SQLiteMedium
from storage.record_store import RecordStore
from storage.seeds import example_changes, example_notes


def _change(change_id: str, *, title: str = "Plasma Rifle", created_at: float = 100.0) -> StoredChange:
    return StoredChange(
        id=change_id,
        entity_type=EntityType.ITEM,
        action=ChangeAction.RECHARGE,
        payload={"item": {"itin": "1001", "name": title}, "expiry_date": "01/01/2030"},
        created_at=created_at,
        title=title,
        subtitle="Recharge ITIN: 1001",
    )


def _changes_store(medium, **kwargs) -> RecordStore[StoredChange]:
    return RecordStore(
        medium,
        "changes",
        encode=StoredChange.to_dict,
        decode=StoredChange.from_dict,
        **kwargs,
    )


class TestRecordStore:
    def test_unwritten_key_reads_empty_and_initializes(self):
        medium = InMemoryMedium()
        store = _changes_store(medium)
        assert store.list() == []
        assert medium.get("changes") == "[]"

    def test_save_appends_in_insertion_order(self):
        store = _changes_store(InMemoryMedium())
        store.save(_change("b"))
        store.save(_change("a"))
        store.save(_change("c"))
        assert [c.id for c in store.list()] == ["b", "a", "c"]

    def test_save_is_upsert(self):
        store = _changes_store(InMemoryMedium())
        store.save(_change("a"))
        store.save(_change("b"))
        store.save(_change("a", title="Renamed"))
        records = store.list()
        assert [c.id for c in records] == ["a", "b"]
        assert records[0].title == "Renamed"

    def test_saving_same_record_twice_is_idempotent(self):
        medium = InMemoryMedium()
        store = _changes_store(medium)
        store.save(_change("a"))
        first = medium.get("changes")
        store.save(_change("a"))
        assert medium.get("changes") == first

    def test_delete_removes_only_matching_id(self):
        store = _changes_store(InMemoryMedium())
        for change_id in ("a", "b", "c"):
            store.save(_change(change_id))
        store.delete("b")
        assert [c.id for c in store.list()] == ["a", "c"]

    def test_delete_absent_id_is_noop(self):
        medium = InMemoryMedium()
        store = _changes_store(medium)
        store.save(_change("a"))
        before = medium.get("changes")
        store.delete("missing")
        assert medium.get("changes") == before

    def test_get(self):
        store = _changes_store(InMemoryMedium())
        store.save(_change("a"))
        assert store.get("a").title == "Plasma Rifle"
        assert store.get("missing") is None

    def test_seed_runs_once(self):
        calls = []

        def seed():
            calls.append(1)
            return [_change("seeded")]

        medium = InMemoryMedium()
        store = _changes_store(medium, seed=seed)
        assert [c.id for c in store.list()] == ["seeded"]
        assert [c.id for c in store.list()] == ["seeded"]
        assert len(calls) == 1

    def test_deleting_everything_does_not_reseed(self):
        medium = InMemoryMedium()
        store = _changes_store(medium, seed=lambda: [_change("seeded")])
        store.delete("seeded")
        assert store.list() == []
        assert medium.get("changes") == "[]"

    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            json.dumps({"id": "a"}),
            json.dumps([{"id": "a"}]),
            json.dumps([{**_change("a").to_dict(), "payload": "not-an-object"}]),
            json.dumps([{**_change("a").to_dict(), "entity_type": "vehicle"}]),
            pytest.param("[" * 100_000, id="deeply-nested"),
        ],
    )
    def test_corrupt_payload_reads_empty_and_reports(self, raw, caplog):
        errors = []
        medium = InMemoryMedium({"changes": raw})
        store = _changes_store(medium, on_error=errors.append, seed=lambda: [_change("seeded")])
        with caplog.at_level(logging.ERROR, logger="storage.record_store"):
            assert store.list() == []
        assert len(errors) == 1
        assert errors[0].key == "changes"
        assert "Failed to read 'changes'" in caplog.text
        assert caplog.records[-1].exc_info is not None
        # corrupt data is neither reseeded nor overwritten by a read
        assert medium.get("changes") == raw

    def test_medium_read_error_is_reported(self):
        class BrokenMedium:
            def get(self, key):
                raise sqlite3.OperationalError("disk I/O error")

            def set(self, key, value):
                raise AssertionError("should not write")

        errors = []
        store = _changes_store(BrokenMedium(), on_error=errors.append)
        assert store.list() == []
        assert "disk I/O error" in errors[0].detail

    def test_notes_round_trip_fields(self):
        store = RecordStore(InMemoryMedium(), "notes", encode=Note.to_dict, decode=Note.from_dict)
        note = Note(id="n1", title="Ops", content="check", linked_ids=["ITIN:1001", "PLIN:1001#01"], updated_at=5.0)
        store.save(note)
        assert store.list() == [note]


class TestStorageContainer:
    def test_rejects_shared_key(self):
        with pytest.raises(ValueError, match="different medium keys"):
            StorageContainer(InMemoryMedium(), changes_key="same", notes_key="same")

    def test_seeds_examples_on_first_read(self):
        container = StorageContainer(InMemoryMedium())
        changes = container.list_changes()
        notes = container.list_notes()
        assert len(changes) == len(example_changes())
        assert len(notes) == len(example_notes())
        pairs = {(c.entity_type, c.action) for c in changes}
        assert (EntityType.POWER, ChangeAction.EXTEND) in pairs

    def test_seed_examples_disabled(self):
        container = StorageContainer(InMemoryMedium(), seed_examples=False)
        assert container.list_changes() == []
        assert container.list_notes() == []

    def test_collections_are_independent(self):
        container = StorageContainer(InMemoryMedium(), seed_examples=False)
        container.save_change(_change("x"))
        container.save_note(Note(id="x", title="Same id", content=""))
        container.delete_change("x")
        assert container.list_changes() == []
        assert [n.id for n in container.list_notes()] == ["x"]

    def test_sqlite_medium_persists_across_instances(self, tmp_path: Path):
        db_path = tmp_path / "nested" / "voiddex.db"
        first = StorageContainer(SQLiteMedium(db_path=db_path), seed_examples=False)
        first.save_change(_change("a"))
        first.save_note(Note(id="n1", title="Kept", content="body"))
        first.close()

        second = StorageContainer(SQLiteMedium(db_path=db_path), seed_examples=False)
        assert [c.id for c in second.list_changes()] == ["a"]
        assert second.list_notes()[0].title == "Kept"
        second.close()

    def test_sqlite_medium_with_injected_connection(self):
        conn = sqlite3.connect(":memory:")
        medium = SQLiteMedium(conn=conn)
        medium.set("k", "v1")
        medium.set("k", "v2")
        assert medium.get("k") == "v2"
        assert medium.get("missing") is None
        medium.close()
        # injected connections stay open
        assert conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0] == 1
        conn.close()
