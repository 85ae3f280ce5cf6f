"""NoteEditor - create/edit a personal note and its identifier links."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

from core.dirty import DirtyStateTracker, NavigationGuard
from core.errors import ValidationError
from core.identifiers import Identifier, IdentifierKind, LinkMode, auto_punctuate_plin, classify, detect_link_mode
from core.navigation import CREATE_NOTE, HOME, MY_NOTES, VIEW_MODE, NavigationHost, NavigationState, route_for
from core.prompts import ConfirmationPrompt, Confirmer, PromptKind, ask
from core.session import Notice
from core.validation import require_text
from services.contracts import EntityServices
from storage.container import StorageContainer
from storage.models import ChangeAction, EntityType, Note

logger = logging.getLogger(__name__)

LINK_ENTITY_TYPES: dict[IdentifierKind, EntityType] = {
    IdentifierKind.ITIN: EntityType.ITEM,
    IdentifierKind.COIN: EntityType.CONDITION,
    IdentifierKind.POIN: EntityType.POWER,
}


class NoteEditor:
    """Editing state for one note.

    Links are ``KIND:VALUE`` strings in insertion order; a duplicate is
    rejected when it is added. Dirtiness compares title, content, pin and the
    set of links against the last load or save.
    """

    def __init__(
        self,
        *,
        storage: StorageContainer,
        services: EntityServices,
        confirmer: Confirmer,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._services = services
        self._confirmer = confirmer
        self._clock = clock
        self.tracker = DirtyStateTracker()
        self.guard = NavigationGuard(self.is_dirty, confirmer)
        self.open(None)

    # ── Loading ──

    def open(self, note: Note | None) -> None:
        self.note_id = note.id if note and note.id else None
        self.title = note.title if note else ""
        self.content = note.content if note else ""
        self.linked_ids: list[str] = list(note.linked_ids) if note else []
        self.is_pinned = note.is_pinned if note else False
        self.updated_at = note.updated_at if note else self._clock()
        self.link_input = ""
        self.link_mode = LinkMode.AUTO
        self.notice: Notice | None = None
        self.tracker.reset(self.editable_fields())

    def resume(self, nav: NavigationState | dict[str, Any] | None) -> None:
        """Reopen a note handed back by a page this editor navigated to."""
        if not isinstance(nav, NavigationState):
            nav = NavigationState.from_dict(nav)
        data = nav.return_state.get("note") or nav.initial_data
        self.open(Note.from_dict(data) if data else None)

    @property
    def is_editing(self) -> bool:
        return self.note_id is not None

    def editable_fields(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "linked_ids": sorted(self.linked_ids),
            "is_pinned": self.is_pinned,
        }

    def is_dirty(self) -> bool:
        return self.tracker.is_dirty(self.editable_fields())

    def current_note(self) -> Note:
        return Note(
            id=self.note_id or "",
            title=self.title,
            content=self.content,
            linked_ids=list(self.linked_ids),
            updated_at=self.updated_at,
            is_pinned=self.is_pinned,
        )

    # ── Editing ──

    def update(self, *, title: str | None = None, content: str | None = None) -> None:
        if title is not None:
            self.title = title
        if content is not None:
            self.content = content
        self.tracker.touch()

    def toggle_pin(self) -> None:
        self.is_pinned = not self.is_pinned
        self.tracker.touch()

    def set_link_input(self, text: str) -> None:
        """Typing-time handler: five-digit PLIN punctuation, then prefix detection."""
        self.link_input = auto_punctuate_plin(text)
        self.link_mode = detect_link_mode(self.link_input, self.link_mode)

    def set_link_mode(self, mode: LinkMode | str) -> None:
        self.link_mode = LinkMode(mode)

    async def add_link(self) -> Identifier | None:
        """Classify the link input and append it; unknown entity codes need confirmation."""
        if not self.link_input.strip():
            return None
        self.notice = None
        identifier = classify(self.link_input, self.link_mode)
        if identifier.link in self.linked_ids:
            self.notice = Notice.error("Link already added.")
            return None

        entity_type = LINK_ENTITY_TYPES.get(identifier.kind)
        if entity_type is not None and not await self._exists(entity_type, identifier.value):
            prompt = ConfirmationPrompt(
                PromptKind.UNVERIFIED_LINK,
                "Unverified Link",
                f"{identifier.kind} {identifier.value} not found in database. Add anyway?",
            )
            if not await ask(self._confirmer, prompt):
                return None

        self.linked_ids.append(identifier.link)
        self.link_input = ""
        self.link_mode = LinkMode.AUTO
        self.tracker.touch()
        return identifier

    async def _exists(self, entity_type: EntityType, code: str) -> bool:
        try:
            result = await self._services.for_type(entity_type).search_by_code(code)
        except Exception as e:
            logger.warning(f"[NoteEditor] Could not verify {entity_type} {code}: {e}")
            return False
        return result.success

    def remove_link(self, link: str) -> None:
        if link in self.linked_ids:
            self.linked_ids.remove(link)
            self.tracker.touch()

    # ── Persistence ──

    def save(self) -> Note | None:
        try:
            require_text(self.title, field="title", label="Title")
        except ValidationError as e:
            self.notice = Notice.error(e.message)
            return None
        now = self._clock()
        note = Note(
            id=self.note_id or f"note-{int(now * 1000)}",
            title=self.title,
            content=self.content,
            linked_ids=list(self.linked_ids),
            updated_at=now,
            is_pinned=self.is_pinned,
        )
        self._storage.save_note(note)
        self.note_id = note.id
        self.updated_at = now
        self.tracker.reset(self.editable_fields())
        self.notice = Notice.success("Note Saved!")
        return note

    async def delete(self, host: NavigationHost) -> bool:
        if self.note_id is None:
            return False
        prompt = ConfirmationPrompt(PromptKind.DELETE, "Delete Note?", "This note will be permanently deleted.")
        if not await ask(self._confirmer, prompt):
            return False
        self._storage.delete_note(self.note_id)
        host.navigate(MY_NOTES)
        return True

    # ── Navigation ──

    async def follow_link(self, link: str, host: NavigationHost) -> bool:
        """Open a linked entity (or a player search) through the unsaved-changes guard."""
        identifier = Identifier.from_link(link)
        if not identifier.is_structured:
            return False
        return await self.guard.confirm_and_run(lambda: self._open_link(identifier, host))

    async def _open_link(self, identifier: Identifier, host: NavigationHost) -> None:
        if identifier.kind is IdentifierKind.PLIN:
            host.navigate(f"{HOME}?q={quote(identifier.value)}&filter=owner")
            return
        entity_type = LINK_ENTITY_TYPES[identifier.kind]
        try:
            result = await self._services.for_type(entity_type).search_by_code(identifier.value)
        except Exception:
            logger.exception(f"[NoteEditor] Lookup failed for {identifier.link}")
            return
        if result.success and result.data is not None:
            host.navigate(
                route_for(entity_type, ChangeAction.CREATE),
                NavigationState(
                    item=result.data.to_dict(),
                    mode=VIEW_MODE,
                    return_to=CREATE_NOTE,
                    return_state={"note": self.current_note().to_dict()},
                ),
            )

    async def go_back(self, host: NavigationHost) -> bool:
        return await self.guard.confirm_and_run(lambda: host.navigate(MY_NOTES))

    async def go_home(self, host: NavigationHost) -> bool:
        return await self.guard.confirm_and_run(lambda: host.navigate(HOME))
