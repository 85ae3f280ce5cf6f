"""Condition and power assignment pages.

Assign adds one player or removes a selection of players; each is its own
commit. Extend rewrites the expiry of a selection of assigned players and asks
for confirmation once the selection reaches the configured size.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from core.dates import UNTIL_DEATH, check_expiry_date, default_expiry, is_until_death
from core.errors import ValidationError
from core.session import CommitOutcome, CommitResult, E, EditSession
from core.validation import check_plin
from services.contracts import ApiResult
from services.models import Assignment, Condition, Power
from storage.models import ChangeAction, EntityType


class _AssignableSession(EditSession[E]):
    """Shared draft shape for pages that work on an assignment list."""

    noun = ""

    def __init__(self, *, character_name: Callable[[str], str] | None = None, **kwargs: Any) -> None:
        self._character_name = character_name or (lambda plin: "")
        super().__init__(**kwargs)

    @property
    def payload_key(self) -> str:
        return self.entity_type.value

    def draft_title(self) -> str:
        return self.entity.name or f"Unknown {self.noun}"

    def draft_subtitle(self) -> str:
        return f"{self.action.value.capitalize()} {self.code_kind}: {self.entity.code}"

    def filtered_assignments(self, query: str = "") -> list[Assignment]:
        """Assignments whose PLIN or player name contains ``query``."""
        if self.entity is None:
            return []
        needle = query.lower()
        return [
            a for a in self.entity.assignments
            if needle in a.plin.lower() or needle in self._character_name(a.plin).lower()
        ]

    def _assigned(self, plins: Any) -> set[str]:
        known = set(self.entity.plins()) if self.entity is not None else set()
        return {p for p in plins if p in known}

    async def _update_assignments(self, assignments: list[Assignment]) -> ApiResult[E]:
        return await self._service.update(self.entity.code, {"assignments": [a.to_dict() for a in assignments]})


class _AssignSession(_AssignableSession[E]):
    action = ChangeAction.ASSIGN
    plin_fields = frozenset({"new_owner"})
    date_fields = frozenset({"new_expiry"})

    def __init__(self, **kwargs: Any) -> None:
        self._pending: tuple[str, list[str]] = ("", [])
        super().__init__(**kwargs)

    def blank_form(self) -> dict[str, Any]:
        return {"new_owner": "", "new_expiry": default_expiry(self._today()), "selected_remove_plins": set()}

    def form_for(self, entity: E) -> dict[str, Any]:
        return self.blank_form()

    def draft_payload(self) -> dict[str, Any]:
        return {
            self.payload_key: self.entity.to_dict(),
            "new_owner": self.form["new_owner"],
            "new_expiry": self.form["new_expiry"],
            "selected_remove_plins": sorted(self.form["selected_remove_plins"]),
        }

    def restore_draft(self, payload: dict[str, Any]) -> None:
        self.entity = self.entity_cls.from_dict(payload[self.payload_key])
        self.form = {
            "new_owner": payload.get("new_owner", ""),
            "new_expiry": payload.get("new_expiry", default_expiry(self._today())),
            "selected_remove_plins": self._assigned(payload.get("selected_remove_plins") or []),
        }

    def _normalize_input(self, name: str, value: Any, previous: Any) -> Any:
        if name == "selected_remove_plins":
            return self._assigned(value)
        return super()._normalize_input(name, value, previous)

    def toggle_remove(self, plin: str) -> None:
        selected = set(self.form["selected_remove_plins"])
        selected.symmetric_difference_update({plin})
        self.update(selected_remove_plins=selected)

    def toggle_remove_filtered(self, query: str = "") -> None:
        visible = {a.plin for a in self.filtered_assignments(query)}
        selected = set(self.form["selected_remove_plins"])
        if visible and visible <= selected:
            selected -= visible
        else:
            selected |= visible
        self.update(selected_remove_plins=selected)

    # ── Commits ──

    async def commit(self) -> CommitResult:
        """Add the entered player if any, otherwise remove the selection."""
        if not self.form["new_owner"].strip() and self.form["selected_remove_plins"]:
            return await self.remove_players()
        return await self.add_player()

    async def add_player(self) -> CommitResult:
        if self.is_committing:
            return CommitResult(CommitOutcome.CANCELLED)
        self._pending = ("add", [self.form["new_owner"]])
        return await self._run_commit(self._validate_add, self._submit_add, 1)

    async def remove_players(self) -> CommitResult:
        if self.is_committing:
            return CommitResult(CommitOutcome.CANCELLED)
        removed = [p for p in self.entity.plins() if p in self.form["selected_remove_plins"]] if self.entity else []
        self._pending = ("remove", removed)
        return await self._run_commit(self._validate_remove, self._submit_remove, len(removed))

    def validate(self) -> None:
        self._validate_add()

    def _validate_add(self) -> None:
        owner = self.form["new_owner"].strip()
        if not owner:
            raise ValidationError("new_owner", "Please enter a Player PLIN.")
        check_plin(owner, field="new_owner", message="PLIN format: 1234#12")
        if owner in self.entity.plins():
            raise ValidationError("new_owner", "Player is already assigned.")
        limits = self.settings.validation
        check_expiry_date(
            self.form["new_expiry"],
            field="new_expiry",
            min_year=limits.min_year,
            max_year=limits.max_year,
        )

    def _validate_remove(self) -> None:
        if not self.form["selected_remove_plins"]:
            raise ValidationError("selected_remove_plins", "Select players to remove.")

    async def submit(self) -> ApiResult[E]:
        return await self._submit_add()

    async def _submit_add(self) -> ApiResult[E]:
        expiry = UNTIL_DEATH if is_until_death(self.form["new_expiry"]) else self.form["new_expiry"]
        added = Assignment(self.form["new_owner"].strip(), expiry)
        return await self._update_assignments([*self.entity.assignments, added])

    async def _submit_remove(self) -> ApiResult[E]:
        selected = self.form["selected_remove_plins"]
        return await self._update_assignments([a for a in self.entity.assignments if a.plin not in selected])

    def success_message(self, before: E | None, after: E) -> str:
        kind, plins = self._pending
        if kind == "remove":
            return f"Unassigned: {', '.join(plins)}"
        return f"Assigned {plins[0]}"


class _ExtendSession(_AssignableSession[E]):
    action = ChangeAction.EXTEND
    date_fields = frozenset({"expiry_date"})

    def blank_form(self) -> dict[str, Any]:
        return {"selected_plins": set(), "expiry_date": ""}

    def form_for(self, entity: E) -> dict[str, Any]:
        return self.blank_form()

    def draft_payload(self) -> dict[str, Any]:
        return {
            self.payload_key: self.entity.to_dict(),
            "expiry_date": self.form["expiry_date"],
            "selected_plins": sorted(self.form["selected_plins"]),
        }

    def restore_draft(self, payload: dict[str, Any]) -> None:
        self.entity = self.entity_cls.from_dict(payload[self.payload_key])
        self.form = {
            "selected_plins": self._assigned(payload.get("selected_plins") or []),
            "expiry_date": payload.get("expiry_date", ""),
        }

    def _normalize_input(self, name: str, value: Any, previous: Any) -> Any:
        if name == "selected_plins":
            return self._assigned(value)
        return super()._normalize_input(name, value, previous)

    def toggle_plin(self, plin: str) -> None:
        """Toggle one player; the first selection prefills an empty expiry."""
        selected = set(self.form["selected_plins"])
        changes: dict[str, Any] = {}
        if plin in selected:
            selected.discard(plin)
        else:
            selected.add(plin)
            if len(selected) == 1 and self.form["expiry_date"] == "":
                current = next((a.expiry_date for a in self.entity.assignments if a.plin == plin), "")
                # "until death" is shown as a blank expiry
                if not current:
                    changes["expiry_date"] = default_expiry(self._today())
                elif not is_until_death(current):
                    changes["expiry_date"] = current
        self.update(selected_plins=selected, **changes)

    def toggle_select_filtered(self, query: str = "") -> None:
        """Select every visible player, or clear them if all are already selected."""
        visible = self.filtered_assignments(query)
        selected = set(self.form["selected_plins"])
        changes: dict[str, Any] = {}
        plins = {a.plin for a in visible}
        if plins and plins <= selected:
            selected -= plins
        else:
            selected |= plins
            if visible and self.form["expiry_date"] == "":
                dated = next((a for a in visible if a.expiry_date and not is_until_death(a.expiry_date)), None)
                changes["expiry_date"] = dated.expiry_date if dated else default_expiry(self._today())
        self.update(selected_plins=selected, **changes)

    def mass_impact_count(self) -> int:
        return len(self.form["selected_plins"])

    def validate(self) -> None:
        if not self.form["selected_plins"]:
            raise ValidationError("selected_plins", "Select players to extend.")
        limits = self.settings.validation
        check_expiry_date(
            self.form["expiry_date"],
            allow_blank=True,
            min_year=limits.min_year,
            max_year=limits.max_year,
        )

    def effective_expiry(self) -> str:
        expiry = self.form["expiry_date"].strip()
        return UNTIL_DEATH if not expiry or is_until_death(expiry) else expiry

    async def submit(self) -> ApiResult[E]:
        expiry = self.effective_expiry()
        selected = self.form["selected_plins"]
        return await self._update_assignments([
            Assignment(a.plin, expiry) if a.plin in selected else a for a in self.entity.assignments
        ])

    def after_commit(self, entity: E) -> None:
        # selection and expiry stay as submitted and become the new baseline
        self.form["selected_plins"] = self._assigned(self.form["selected_plins"])

    def success_message(self, before: E | None, after: E) -> str:
        selected = [p for p in after.plins() if p in self.form["selected_plins"]]
        first = selected[0] if selected else ""
        if len(selected) == 1:
            return f"Updated expiry for {first}."
        return f"Updated expiry for {len(selected)} players (e.g., {first})."


class AssignConditionSession(_AssignSession[Condition]):
    entity_type = EntityType.CONDITION
    entity_cls = Condition
    noun = "Condition"


class AssignPowerSession(_AssignSession[Power]):
    entity_type = EntityType.POWER
    entity_cls = Power
    noun = "Power"


class ExtendConditionSession(_ExtendSession[Condition]):
    entity_type = EntityType.CONDITION
    entity_cls = Condition
    noun = "Condition"


class ExtendPowerSession(_ExtendSession[Power]):
    entity_type = EntityType.POWER
    entity_cls = Power
    noun = "Power"
