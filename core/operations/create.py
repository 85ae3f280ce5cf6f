"""Create pages for items, conditions and powers.

A create page has no search: it starts on a blank form. A successful create
switches the page to a read-only view of the new entity. The same pages also
open existing entities read-only (``mode="view"``) for deep links.
"""

from __future__ import annotations

from typing import Any

from core.dates import UNTIL_DEATH, check_expiry_date, default_expiry, is_until_death
from core.navigation import VIEW_MODE, NavigationState
from core.session import EditSession, E
from core.validation import check_plin, require_text
from services.contracts import ApiResult
from services.models import Assignment, Condition, Item, Power
from storage.models import ChangeAction, EntityType

MULTIPLE = "Multiple"

_FORM_KEYS = ("name", "description", "owner", "expiry_date", "remarks", "cs_remarks")


class _CreateSession(EditSession[E]):
    action = ChangeAction.CREATE
    searchable = False
    plin_fields = frozenset({"owner"})
    date_fields = frozenset({"expiry_date"})
    noun = ""

    def blank_form(self) -> dict[str, Any]:
        return {
            "name": "",
            "description": "",
            "owner": "",
            "expiry_date": default_expiry(self._today()),
            "remarks": "",
            "cs_remarks": "",
        }

    def draft_payload(self) -> dict[str, Any]:
        return dict(self.form)

    def restore_draft(self, payload: dict[str, Any]) -> None:
        self.entity = None
        form = self.blank_form()
        form.update({k: payload[k] for k in _FORM_KEYS if k in payload})
        self.form = form

    def draft_title(self) -> str:
        return self.form["name"] or f"Untitled {self.noun}"

    def draft_subtitle(self) -> str:
        return f"Draft {self.noun}"

    def resume(self, nav: NavigationState | dict[str, Any] | None) -> None:
        if not isinstance(nav, NavigationState):
            nav = NavigationState.from_dict(nav)
        if nav.mode == VIEW_MODE and nav.item is not None:
            self.return_to = nav.return_to
            self.return_state = dict(nav.return_state)
            self.open_view(self.entity_cls.from_dict(nav.item))
            return
        super().resume(nav)

    def open_view(self, entity: E) -> None:
        """Show an existing entity read-only."""
        self.load_entity(entity)
        self.view_mode = True

    def after_commit(self, entity: E) -> None:
        # the form keeps what the user entered; the page becomes a read-only view
        self.view_mode = True

    def success_message(self, before: E | None, after: E) -> str:
        return f"{self.noun} Created! {self.code_kind}: {after.code}"

    def _validate_common(self) -> None:
        require_text(self.form["name"], field="name", label="Name")
        require_text(self.form["description"], field="description", label="Description")


class CreateItemSession(_CreateSession[Item]):
    entity_type = EntityType.ITEM
    entity_cls = Item
    noun = "Item"

    def form_for(self, entity: Item) -> dict[str, Any]:
        return {
            "name": entity.name,
            "description": entity.description,
            "owner": entity.owner,
            "expiry_date": entity.expiry_date,
            "remarks": entity.remarks,
            "cs_remarks": entity.cs_remarks,
        }

    def validate(self) -> None:
        self._validate_common()
        check_plin(self.form["owner"])
        limits = self.settings.validation
        check_expiry_date(
            self.form["expiry_date"],
            allow_until_death=False,
            min_year=limits.min_year,
            max_year=limits.max_year,
        )

    async def submit(self) -> ApiResult[Item]:
        return await self._service.create(dict(self.form))


class _CreateAssignableSession(_CreateSession[E]):
    """Condition/Power create: the optional owner becomes the single assignment."""

    owner_sentinel: str | None = None

    def form_for(self, entity: E) -> dict[str, Any]:
        owner, expiry = "", ""
        if len(entity.assignments) > 1:
            expiry = MULTIPLE
        elif entity.assignments:
            owner = entity.assignments[0].plin
            expiry = entity.assignments[0].expiry_date
        return {
            "name": entity.name,
            "description": entity.description,
            "owner": owner,
            "expiry_date": expiry,
            "remarks": entity.remarks,
            "cs_remarks": entity.cs_remarks,
        }

    def validate(self) -> None:
        self._validate_common()
        sentinel = self.owner_sentinel
        message = f"Player must be format 1234#12 or '{sentinel}'" if sentinel else "Player must be format 1234#12"
        check_plin(self.form["owner"], allow_blank=True, sentinel=sentinel, message=message)
        limits = self.settings.validation
        check_expiry_date(
            self.form["expiry_date"],
            allow_blank=True,
            min_year=limits.min_year,
            max_year=limits.max_year,
        )

    def create_fields(self) -> dict[str, Any]:
        expiry = self.form["expiry_date"].strip()
        if not expiry or is_until_death(expiry):
            expiry = UNTIL_DEATH
        owner = self.form["owner"].strip()
        assignments = [Assignment(owner, expiry).to_dict()] if owner else []
        return {
            "name": self.form["name"],
            "description": self.form["description"],
            "assignments": assignments,
            "remarks": self.form["remarks"],
            "cs_remarks": self.form["cs_remarks"],
        }

    async def submit(self) -> ApiResult[E]:
        return await self._service.create(self.create_fields())


class CreateConditionSession(_CreateAssignableSession[Condition]):
    entity_type = EntityType.CONDITION
    entity_cls = Condition
    noun = "Condition"


class CreatePowerSession(_CreateAssignableSession[Power]):
    entity_type = EntityType.POWER
    entity_cls = Power
    noun = "Power"

    @property
    def owner_sentinel(self) -> str:
        return self.settings.validation.unowned_sentinel

    def _normalize_input(self, name: str, value: Any, previous: Any) -> Any:
        if name == "owner" and value.strip().upper() == self.owner_sentinel:
            return self.owner_sentinel
        return super()._normalize_input(name, value, previous)
