"""EditSession - the per-page draft and commit protocol.

One session object per entity-operation page, built fresh on page enter and
discarded on navigation:

    SEARCHING → LOADED → (DRAFTED) → COMMITTING → COMMITTED | FAILED

Subclasses supply the form fields, draft payload shape, validation and the
service call; the base class owns dirtiness, draft persistence, the
confirmation gates and the commit side effects.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, ClassVar, Generic, TypeVar

from config.schema import VoiddexSettings
from core.dates import extend_one_year_round_up, format_date_input
from core.dirty import DirtyStateTracker, NavigationGuard
from core.errors import CommitFailure, IllegalTransitionError, NotFoundError, ValidationError
from core.identifiers import IdentifierKind, LinkMode, classify, is_entity_code, normalize_plin_field
from core.lifecycle import EditSessionState, assert_edit_session_transition
from core.navigation import HOME, NavigationHost, NavigationState
from core.prompts import Confirmer, ask, mass_impact_prompt, stale_draft_prompt
from services.contracts import ApiResult, EntityServices
from services.models import Condition, Item, Power
from storage.container import StorageContainer
from storage.models import ChangeAction, EntityType, StoredChange

logger = logging.getLogger(__name__)

E = TypeVar("E", Item, Condition, Power)

DRAFT_SAVED = "Draft saved successfully."

CODE_KINDS: dict[EntityType, IdentifierKind] = {
    EntityType.ITEM: IdentifierKind.ITIN,
    EntityType.CONDITION: IdentifierKind.COIN,
    EntityType.POWER: IdentifierKind.POIN,
}


class CommitOutcome(StrEnum):
    COMMITTED = "committed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    INVALID = "invalid"


class NoticeLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    level: NoticeLevel
    message: str

    @classmethod
    def success(cls, message: str) -> Notice:
        return cls(NoticeLevel.SUCCESS, message)

    @classmethod
    def error(cls, message: str) -> Notice:
        return cls(NoticeLevel.ERROR, message)


@dataclass
class CommitResult:
    outcome: CommitOutcome
    notice: Notice | None = None
    entity: Any = None

    @property
    def committed(self) -> bool:
        return self.outcome is CommitOutcome.COMMITTED


class EditSession(ABC, Generic[E]):
    entity_type: ClassVar[EntityType]
    action: ClassVar[ChangeAction]
    entity_cls: ClassVar[type]
    searchable: ClassVar[bool] = True
    plin_fields: ClassVar[frozenset[str]] = frozenset()
    date_fields: ClassVar[frozenset[str]] = frozenset()

    def __init__(
        self,
        *,
        storage: StorageContainer,
        services: EntityServices,
        confirmer: Confirmer,
        settings: VoiddexSettings | None = None,
        clock: Callable[[], float] = time.time,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.settings = settings or VoiddexSettings()
        self._storage = storage
        self._service = services.for_type(self.entity_type)
        self._confirmer = confirmer
        self._clock = clock
        self._today = today

        self.tracker = DirtyStateTracker()
        self.guard = NavigationGuard(self.is_dirty, confirmer)

        self.state: EditSessionState | None = None
        self.entity: E | None = None
        self.form: dict[str, Any] = {}
        self.draft_id: str | None = None
        self.draft_timestamp: float | None = None
        self.return_to: str | None = None
        self.return_state: dict[str, Any] = {}
        self.search_error: str | None = None
        self.field_errors: dict[str, str] = {}
        self.notice: Notice | None = None
        self.last_failure: CommitFailure | None = None
        self.view_mode = False
        self._commit_in_flight = False

        self.reset()

    # ── Subclass hooks ──

    @abstractmethod
    def blank_form(self) -> dict[str, Any]:
        """Form values with nothing loaded or entered."""

    @abstractmethod
    def form_for(self, entity: E) -> dict[str, Any]:
        """Form values for a freshly loaded entity (no edits yet)."""

    @abstractmethod
    def draft_payload(self) -> dict[str, Any]: ...

    @abstractmethod
    def restore_draft(self, payload: dict[str, Any]) -> None:
        """Set ``entity`` and ``form`` from a stored draft payload."""

    @abstractmethod
    def draft_title(self) -> str: ...

    @abstractmethod
    def draft_subtitle(self) -> str: ...

    @abstractmethod
    def validate(self) -> None:
        """Raise ValidationError for the first offending field."""

    @abstractmethod
    async def submit(self) -> ApiResult[E]: ...

    @abstractmethod
    def success_message(self, before: E | None, after: E) -> str: ...

    def after_commit(self, entity: E) -> None:
        """Form values once ``entity`` is confirmed by the service."""
        self.form = self.form_for(entity)

    def mass_impact_count(self) -> int:
        return 0

    async def confirm_extra(self) -> bool:
        """Operation-specific confirmation asked before the common gates."""
        return True

    # ── State ──

    @property
    def code_kind(self) -> IdentifierKind:
        return CODE_KINDS[self.entity_type]

    @property
    def is_committing(self) -> bool:
        return self._commit_in_flight or self.state is EditSessionState.COMMITTING

    def editable_fields(self) -> dict[str, Any]:
        return dict(self.form)

    def is_dirty(self) -> bool:
        if self.view_mode:
            return False
        return self.tracker.is_dirty(self.editable_fields())

    def _transition(self, target: EditSessionState, *, reason: str) -> None:
        assert_edit_session_transition(self.state, target, reason=reason)
        self.state = target

    def _enter_loaded(self, entity: E | None) -> None:
        self.entity = entity
        self.form = self.form_for(entity) if entity is not None else self.blank_form()
        self.tracker.reset(self.editable_fields())
        self._transition(EditSessionState.LOADED, reason="load")

    def _clear_local(self) -> None:
        self._transition(EditSessionState.SEARCHING, reason="reset")
        self.entity = None
        self.form = self.blank_form()
        self.draft_id = None
        self.draft_timestamp = None
        self.search_error = None
        self.field_errors = {}
        self.notice = None
        self.last_failure = None
        self.view_mode = False
        self.tracker.clear()

    def reset(self) -> None:
        """Clear all local session state. Saved drafts are left alone."""
        self._clear_local()
        if not self.searchable:
            self._enter_loaded(None)

    async def request_reset(self) -> bool:
        """New search / new form, through the unsaved-changes guard."""
        return await self.guard.confirm_and_run(self.reset)

    async def confirm_and_run(self, action: Callable[[], Any]) -> bool:
        return await self.guard.confirm_and_run(action)

    # ── Editing ──

    def update(self, **changes: Any) -> None:
        """Apply user edits; PLIN and date inputs are normalized as typed."""
        if self.view_mode:
            raise IllegalTransitionError(f"{self.entity_type} {self.action} page is read-only")
        if self.state is EditSessionState.SEARCHING:
            raise IllegalTransitionError("Nothing loaded to edit")
        unknown = set(changes) - set(self.form)
        if unknown:
            raise KeyError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            self.form[name] = self._normalize_input(name, value, self.form[name])
            self.field_errors.pop(name, None)
        self.tracker.touch()

    def add_year(self, field: str = "expiry_date") -> bool:
        """Extend the date in ``field`` by a year, rounded up to a month start."""
        current = self.form[field]
        if not current.strip():
            return False
        self.notice = None
        try:
            extended = extend_one_year_round_up(current, max_year=self.settings.validation.max_year, field=field)
        except ValidationError as e:
            self.field_errors[field] = e.message
            self.notice = Notice.error(e.message)
            return False
        self.update(**{field: extended})
        return True

    def _normalize_input(self, name: str, value: Any, previous: Any) -> Any:
        if name in self.plin_fields:
            return normalize_plin_field(value)
        if name in self.date_fields:
            # deleting characters keeps the raw text so separators can be removed
            if previous and len(value) < len(previous):
                return value
            if any(ch.isalpha() for ch in value):
                return value
            return format_date_input(
                value,
                min_year=self.settings.validation.min_year,
                max_year=self.settings.validation.max_year,
            )
        return value

    # ── Loading ──

    async def search(self, raw: str) -> bool:
        """Look up an entity by code. A miss stays in SEARCHING with ``search_error`` set."""
        if not self.searchable:
            raise IllegalTransitionError(f"{self.entity_type} {self.action} page has no search")
        self._clear_local()
        code = classify(raw, LinkMode(self.code_kind.value)).value
        if not is_entity_code(code):
            self.search_error = f"Invalid {self.code_kind}."
            return False
        try:
            result = await self._service.search_by_code(code)
        except Exception:
            logger.exception(f"[EditSession] Search failed for {self.code_kind} {code}")
            self.search_error = "Error"
            return False
        if not result.success or result.data is None:
            miss = NotFoundError(self.entity_type.value, code)
            logger.info(f"[EditSession] {miss}")
            self.search_error = "Not found"
            return False
        self.load_entity(result.data)
        return True

    def load_entity(self, entity: E) -> None:
        self._clear_local()
        self._enter_loaded(entity)

    def resume(self, nav: NavigationState | dict[str, Any] | None) -> None:
        """Resume from a navigation bag exactly as from a fresh draft load."""
        if not isinstance(nav, NavigationState):
            nav = NavigationState.from_dict(nav)
        self.return_to = nav.return_to
        self.return_state = dict(nav.return_state)
        if nav.initial_data is not None:
            self._clear_local()
            self.restore_draft(dict(nav.initial_data))
            self.tracker.reset(self.editable_fields())
            self._transition(EditSessionState.LOADED, reason="resume draft")
            if nav.draft_id:
                self.draft_id = nav.draft_id
                self.draft_timestamp = nav.draft_timestamp
                self._transition(EditSessionState.DRAFTED, reason="resume draft")
        elif nav.item is not None:
            self.load_entity(self.entity_cls.from_dict(nav.item))

    # ── Drafts ──

    def save_draft(self) -> StoredChange:
        """Persist the current edit as a stored change and treat it as clean."""
        if self.view_mode:
            raise IllegalTransitionError("Cannot draft a read-only view")
        assert_edit_session_transition(self.state, EditSessionState.DRAFTED, reason="save draft")
        now = self._clock()
        draft_id = self.draft_id or f"draft-{int(now * 1000)}"
        existing = self._storage.changes_repo().get(draft_id)
        change = StoredChange(
            id=draft_id,
            entity_type=self.entity_type,
            action=self.action,
            payload=self.draft_payload(),
            created_at=now,
            title=self.draft_title(),
            subtitle=self.draft_subtitle(),
            is_pinned=existing.is_pinned if existing else False,
        )
        self._storage.save_change(change)
        self.draft_id = draft_id
        self.draft_timestamp = now
        self.tracker.reset(self.editable_fields())
        self._transition(EditSessionState.DRAFTED, reason="save draft")
        self.notice = Notice.success(DRAFT_SAVED)
        return change

    # ── Commit ──

    async def commit(self) -> CommitResult:
        return await self._run_commit(self.validate, self.submit, self.mass_impact_count())

    async def _run_commit(
        self,
        validate: Callable[[], None],
        submit: Callable[[], Awaitable[ApiResult[E]]],
        impact: int = 0,
    ) -> CommitResult:
        if self.is_committing:
            logger.debug("[EditSession] Commit already in flight, ignoring re-submit")
            return CommitResult(CommitOutcome.CANCELLED)
        if self.view_mode:
            return CommitResult(CommitOutcome.CANCELLED)
        assert_edit_session_transition(self.state, EditSessionState.COMMITTING, reason="commit")
        self._commit_in_flight = True
        try:
            return await self._commit_once(validate, submit, impact)
        finally:
            self._commit_in_flight = False

    async def _commit_once(
        self,
        validate: Callable[[], None],
        submit: Callable[[], Awaitable[ApiResult[E]]],
        impact: int,
    ) -> CommitResult:
        self.field_errors = {}
        self.notice = None
        try:
            validate()
        except ValidationError as e:
            self.field_errors[e.field] = e.message
            self.notice = Notice.error(e.message)
            return CommitResult(CommitOutcome.INVALID, self.notice)

        if not await self._confirm_gates(impact):
            return CommitResult(CommitOutcome.CANCELLED)

        self._transition(EditSessionState.COMMITTING, reason="commit")
        try:
            result = await submit()
        except Exception as e:
            logger.exception(f"[EditSession] {self.entity_type} {self.action} commit raised")
            return self._fail(CommitFailure("An unexpected error occurred.", cause=e))
        if not result.success or result.data is None:
            logger.warning(f"[EditSession] {self.entity_type} {self.action} rejected: {result.error}")
            return self._fail(CommitFailure(f"Failed: {result.error or 'no data returned'}"))
        return self._succeed(result.data)

    async def _confirm_gates(self, impact: int) -> bool:
        if not await self.confirm_extra():
            return False
        if self.draft_id and not await ask(self._confirmer, stale_draft_prompt()):
            return False
        threshold = self.settings.mass_impact.threshold_for(self.entity_type.value, self.action.value)
        if threshold is not None and impact >= threshold:
            if not await ask(self._confirmer, mass_impact_prompt(impact)):
                return False
        return True

    def _succeed(self, entity: E) -> CommitResult:
        if self.draft_id:
            self._storage.delete_change(self.draft_id)
            logger.info(f"[EditSession] Draft {self.draft_id} processed and removed")
            self.draft_id = None
            self.draft_timestamp = None
        before = self.entity
        self.entity = entity
        self.after_commit(entity)
        self.tracker.reset(self.editable_fields())
        self.tracker.suppress()
        self.last_failure = None
        self._transition(EditSessionState.COMMITTED, reason="service acknowledged")
        self.notice = Notice.success(self.success_message(before, entity))
        return CommitResult(CommitOutcome.COMMITTED, self.notice, entity)

    def _fail(self, failure: CommitFailure) -> CommitResult:
        self.last_failure = failure
        self._transition(EditSessionState.FAILED, reason=failure.message)
        self.notice = Notice.error(failure.message)
        return CommitResult(CommitOutcome.FAILED, self.notice)

    # ── Navigation ──

    def navigation_state(self) -> NavigationState:
        """State handed to a sibling page opened from this one."""
        item = self.entity.to_dict() if self.entity is not None else None
        return NavigationState(item=item, return_to=self.return_to, return_state=dict(self.return_state))

    async def go_back(self, host: NavigationHost) -> bool:
        target = self.return_to or HOME
        state = NavigationState(return_state=dict(self.return_state))
        return await self.guard.confirm_and_run(lambda: host.navigate(target, state))

    async def go_home(self, host: NavigationHost) -> bool:
        return await self.guard.confirm_and_run(lambda: host.navigate(HOME))

    async def open_page(self, host: NavigationHost, path: str) -> bool:
        state = self.navigation_state()
        return await self.guard.confirm_and_run(lambda: host.navigate(path, state))
