"""Item update pages: recharge (new expiry) and assign (single owner)."""

from __future__ import annotations

from typing import Any

from core.dates import check_expiry_date
from core.prompts import ConfirmationPrompt, PromptKind, ask
from core.session import EditSession
from core.validation import check_plin
from services.contracts import ApiResult
from services.models import Item
from storage.models import ChangeAction, EntityType


class _ItemUpdateSession(EditSession[Item]):
    entity_type = EntityType.ITEM
    entity_cls = Item

    def draft_title(self) -> str:
        return self.entity.name or "Unknown Item"

    def draft_subtitle(self) -> str:
        return f"{self.action.value.capitalize()} ITIN: {self.entity.itin}"


class RechargeItemSession(_ItemUpdateSession):
    action = ChangeAction.RECHARGE
    date_fields = frozenset({"expiry_date"})

    def blank_form(self) -> dict[str, Any]:
        return {"expiry_date": ""}

    def form_for(self, entity: Item) -> dict[str, Any]:
        return {"expiry_date": entity.expiry_date}

    def draft_payload(self) -> dict[str, Any]:
        return {"item": self.entity.to_dict(), "expiry_date": self.form["expiry_date"]}

    def restore_draft(self, payload: dict[str, Any]) -> None:
        self.entity = Item.from_dict(payload["item"])
        self.form = {"expiry_date": payload.get("expiry_date", "")}

    def validate(self) -> None:
        limits = self.settings.validation
        check_expiry_date(
            self.form["expiry_date"],
            allow_until_death=False,
            min_year=limits.min_year,
            max_year=limits.max_year,
        )

    async def submit(self) -> ApiResult[Item]:
        return await self._service.update(self.entity.itin, {"expiry_date": self.form["expiry_date"]})

    def success_message(self, before: Item | None, after: Item) -> str:
        previous = before.expiry_date if before else ""
        return f"Success! Expiry updated from {previous} to {after.expiry_date}"


class AssignItemSession(_ItemUpdateSession):
    """Owner PLIN or blank; committing a blank owner unassigns after confirmation."""

    action = ChangeAction.ASSIGN
    plin_fields = frozenset({"owner"})

    def blank_form(self) -> dict[str, Any]:
        return {"owner": ""}

    def form_for(self, entity: Item) -> dict[str, Any]:
        return {"owner": entity.owner}

    def draft_payload(self) -> dict[str, Any]:
        return {"item": self.entity.to_dict(), "owner": self.form["owner"]}

    def restore_draft(self, payload: dict[str, Any]) -> None:
        self.entity = Item.from_dict(payload["item"])
        self.form = {"owner": payload.get("owner", "")}

    def validate(self) -> None:
        check_plin(self.form["owner"], allow_blank=True, message="Player PLIN must be format 1234#12 or 12#1")

    async def confirm_extra(self) -> bool:
        if self.form["owner"].strip():
            return True
        current = self.entity.owner or "the current owner"
        prompt = ConfirmationPrompt(
            PromptKind.UNASSIGN,
            "Unassign Item?",
            f"Remove {current} from ITIN {self.entity.itin}?",
        )
        return await ask(self._confirmer, prompt)

    async def submit(self) -> ApiResult[Item]:
        return await self._service.update(self.entity.itin, {"owner": self.form["owner"].strip()})

    def success_message(self, before: Item | None, after: Item) -> str:
        old, new = (before.owner if before else ""), after.owner
        if old and not new:
            return f"Unassigned {old}"
        if new and not old:
            return f"Assigned {new}"
        if old and new and old != new:
            return f"Unassigned {old}, Assigned {new}"
        return f"Assignment updated to {new}"
