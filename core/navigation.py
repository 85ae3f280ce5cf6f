"""Navigation state bag, route table, draft resumption and deep links.

The host owns the actual view transition; this module only decides where to
go and what state to carry so that a page can resume identically from the bag
as from a fresh draft load.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol
from urllib.parse import quote

from services.contracts import EntityServices
from storage.models import ChangeAction, EntityType, StoredChange

logger = logging.getLogger(__name__)

HOME = "/"
STORED_CHANGES = "/stored-changes"
MY_NOTES = "/my-notes"
CREATE_NOTE = "/create-note"

VIEW_MODE = "view"

ROUTES: dict[tuple[EntityType, ChangeAction], str] = {
    (EntityType.ITEM, ChangeAction.CREATE): "/create-item",
    (EntityType.ITEM, ChangeAction.RECHARGE): "/recharge-item",
    (EntityType.ITEM, ChangeAction.ASSIGN): "/assign-item",
    (EntityType.CONDITION, ChangeAction.CREATE): "/create-condition",
    (EntityType.CONDITION, ChangeAction.ASSIGN): "/assign-condition",
    (EntityType.CONDITION, ChangeAction.EXTEND): "/extend-condition",
    (EntityType.POWER, ChangeAction.CREATE): "/create-power",
    (EntityType.POWER, ChangeAction.ASSIGN): "/assign-power",
    (EntityType.POWER, ChangeAction.EXTEND): "/extend-power",
}


@dataclass
class NavigationState:
    """Opaque bag carried across a view transition."""

    item: dict[str, Any] | None = None
    draft_id: str | None = None
    draft_timestamp: float | None = None
    return_to: str | None = None
    return_state: dict[str, Any] = field(default_factory=dict)
    initial_data: dict[str, Any] | None = None
    mode: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> NavigationState:
        data = data or {}
        timestamp = data.get("draft_timestamp")
        return cls(
            item=data.get("item"),
            draft_id=data.get("draft_id"),
            draft_timestamp=float(timestamp) if timestamp is not None else None,
            return_to=data.get("return_to"),
            return_state=dict(data.get("return_state") or {}),
            initial_data=data.get("initial_data"),
            mode=data.get("mode"),
        )


class NavigationHost(Protocol):
    def navigate(self, path: str, state: NavigationState | None = None) -> None:
        """Request a view transition."""


def route_for(entity_type: EntityType | str, action: ChangeAction | str) -> str:
    try:
        return ROUTES[(EntityType(entity_type), ChangeAction(action))]
    except (KeyError, ValueError) as e:
        raise ValueError(f"No page handles {entity_type}/{action}") from e


def resume_draft(change: StoredChange) -> tuple[str, NavigationState]:
    """Path and state bag that reopen ``change`` on its edit page."""
    path = route_for(change.entity_type, change.action)
    state = NavigationState(
        initial_data=dict(change.payload),
        draft_id=change.id,
        draft_timestamp=change.created_at,
        return_to=STORED_CHANGES,
    )
    return path, state


async def resolve_deep_link(
    entity_type: EntityType | str,
    code: str,
    services: EntityServices,
    host: NavigationHost,
) -> str:
    """Open a scanned or linked code; returns the path navigated to.

    Found: the kind's create page in view mode. Not found: dashboard search
    for the code. Service error: home.
    """
    kind = EntityType(entity_type)
    if not code:
        host.navigate(HOME)
        return HOME
    try:
        result = await services.for_type(kind).search_by_code(code)
    except Exception:
        logger.exception(f"[DeepLink] Lookup failed for {kind} {code}")
        host.navigate(HOME)
        return HOME

    if result.success and result.data is not None:
        path = route_for(kind, ChangeAction.CREATE)
        host.navigate(path, NavigationState(item=result.data.to_dict(), mode=VIEW_MODE))
        return path

    path = f"{HOME}?q={quote(code)}"
    host.navigate(path)
    return path
