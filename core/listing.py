"""Presentation helpers for the stored-changes and notes screens.

The stores return records in insertion order; filtering, pin-first sorting,
pin toggling and bulk deletion live here.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable
from enum import StrEnum
from typing import TypeVar

from core.identifiers import IdentifierKind
from core.navigation import NavigationHost, resume_draft
from storage.container import StorageContainer
from storage.models import EntityType, Note, StoredChange

R = TypeVar("R", StoredChange, Note)


class SortField(StrEnum):
    DATE = "date"
    TITLE = "title"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


def next_sort(field: SortField, current: SortField, direction: SortDirection) -> tuple[SortField, SortDirection]:
    """Clicking the active field flips direction; a new field starts newest-first or A-Z."""
    if field == current:
        flipped = SortDirection.ASC if direction is SortDirection.DESC else SortDirection.DESC
        return field, flipped
    return field, SortDirection.DESC if field is SortField.DATE else SortDirection.ASC


def sort_pinned_first(
    records: Iterable[R],
    *,
    timestamp: Callable[[R], float],
    field: SortField = SortField.DATE,
    direction: SortDirection = SortDirection.DESC,
    casefold_titles: bool = False,
) -> list[R]:
    def by_title(record: R) -> str:
        title = record.title or ""
        return title.casefold() if casefold_titles else title

    key = timestamp if field is SortField.DATE else by_title
    ordered = sorted(records, key=key, reverse=direction is SortDirection.DESC)
    # stable: keeps the field order within each pin group
    return sorted(ordered, key=lambda r: not r.is_pinned)


def list_drafts(
    storage: StorageContainer,
    *,
    entity_type: EntityType | str | None = None,
    field: SortField = SortField.DATE,
    direction: SortDirection = SortDirection.DESC,
) -> list[StoredChange]:
    changes = storage.list_changes()
    if entity_type is not None:
        kind = EntityType(entity_type)
        changes = [c for c in changes if c.entity_type is kind]
    return sort_pinned_first(changes, timestamp=lambda c: c.created_at, field=field, direction=direction)


def list_notes(
    storage: StorageContainer,
    *,
    link_kind: IdentifierKind | str | None = None,
    field: SortField = SortField.DATE,
    direction: SortDirection = SortDirection.DESC,
) -> list[Note]:
    notes = storage.list_notes()
    if link_kind is not None:
        prefix = f"{IdentifierKind(link_kind)}:"
        notes = [n for n in notes if any(link.startswith(prefix) for link in n.linked_ids)]
    return sort_pinned_first(
        notes, timestamp=lambda n: n.updated_at, field=field, direction=direction, casefold_titles=True
    )


def toggle_change_pin(storage: StorageContainer, change: StoredChange) -> StoredChange:
    updated = dataclasses.replace(change, is_pinned=not change.is_pinned)
    storage.save_change(updated)
    return updated


def toggle_note_pin(storage: StorageContainer, note: Note) -> Note:
    updated = dataclasses.replace(note, is_pinned=not note.is_pinned)
    storage.save_note(updated)
    return updated


def delete_changes(storage: StorageContainer, ids: Iterable[str]) -> int:
    count = 0
    for change_id in ids:
        storage.delete_change(change_id)
        count += 1
    return count


def delete_notes(storage: StorageContainer, ids: Iterable[str]) -> int:
    count = 0
    for note_id in ids:
        storage.delete_note(note_id)
        count += 1
    return count


def draft_reference_code(change: StoredChange) -> str | None:
    """The ITIN/COIN/POIN a draft refers to; create drafts have none."""
    payload = change.payload
    code_field = {EntityType.ITEM: "itin", EntityType.CONDITION: "coin", EntityType.POWER: "poin"}[change.entity_type]
    entity = payload.get(change.entity_type.value)
    if isinstance(entity, dict) and entity.get(code_field):
        return str(entity[code_field])
    return payload.get(code_field) or None


def open_draft(change: StoredChange, host: NavigationHost) -> str:
    path, state = resume_draft(change)
    host.navigate(path, state)
    return path
