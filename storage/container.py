"""Storage container: one durable medium, two record stores."""

from __future__ import annotations

from collections.abc import Callable

from config.schema import DEFAULT_CHANGES_KEY, DEFAULT_NOTES_KEY
from core.errors import StorageReadError
from storage.contracts import DurableMedium
from storage.models import Note, StoredChange
from storage.record_store import RecordStore
from storage.seeds import example_changes, example_notes


class StorageContainer:
    """Composition root for the stored-changes and notes stores."""

    def __init__(
        self,
        medium: DurableMedium,
        *,
        changes_key: str = DEFAULT_CHANGES_KEY,
        notes_key: str = DEFAULT_NOTES_KEY,
        seed_examples: bool = True,
        on_error: Callable[[StorageReadError], None] | None = None,
    ) -> None:
        if changes_key == notes_key:
            raise ValueError("Stored changes and notes must use different medium keys.")
        self._medium = medium
        self._changes = RecordStore[StoredChange](
            medium,
            changes_key,
            encode=StoredChange.to_dict,
            decode=StoredChange.from_dict,
            seed=example_changes if seed_examples else None,
            on_error=on_error,
            name="stored_changes",
        )
        self._notes = RecordStore[Note](
            medium,
            notes_key,
            encode=Note.to_dict,
            decode=Note.from_dict,
            seed=example_notes if seed_examples else None,
            on_error=on_error,
            name="notes",
        )

    @property
    def medium(self) -> DurableMedium:
        return self._medium

    def changes_repo(self) -> RecordStore[StoredChange]:
        return self._changes

    def notes_repo(self) -> RecordStore[Note]:
        return self._notes

    def list_changes(self) -> list[StoredChange]:
        return self._changes.list()

    def save_change(self, change: StoredChange) -> None:
        self._changes.save(change)

    def delete_change(self, change_id: str) -> None:
        self._changes.delete(change_id)

    def list_notes(self) -> list[Note]:
        return self._notes.list()

    def save_note(self, note: Note) -> None:
        self._notes.save(note)

    def delete_note(self, note_id: str) -> None:
        self._notes.delete(note_id)

    def close(self) -> None:
        close = getattr(self._medium, "close", None)
        if callable(close):
            close()
