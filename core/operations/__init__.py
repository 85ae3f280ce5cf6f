"""The nine entity-operation pages and a lookup by (entity type, action)."""

from __future__ import annotations

from typing import Any

from core.navigation import NavigationState
from core.session import EditSession
from storage.models import ChangeAction, EntityType

from .assignments import (
    AssignConditionSession,
    AssignPowerSession,
    ExtendConditionSession,
    ExtendPowerSession,
    _AssignableSession,
)
from .create import CreateConditionSession, CreateItemSession, CreatePowerSession
from .items import AssignItemSession, RechargeItemSession

SESSION_TYPES: dict[tuple[EntityType, ChangeAction], type[EditSession]] = {
    (EntityType.ITEM, ChangeAction.CREATE): CreateItemSession,
    (EntityType.ITEM, ChangeAction.RECHARGE): RechargeItemSession,
    (EntityType.ITEM, ChangeAction.ASSIGN): AssignItemSession,
    (EntityType.CONDITION, ChangeAction.CREATE): CreateConditionSession,
    (EntityType.CONDITION, ChangeAction.ASSIGN): AssignConditionSession,
    (EntityType.CONDITION, ChangeAction.EXTEND): ExtendConditionSession,
    (EntityType.POWER, ChangeAction.CREATE): CreatePowerSession,
    (EntityType.POWER, ChangeAction.ASSIGN): AssignPowerSession,
    (EntityType.POWER, ChangeAction.EXTEND): ExtendPowerSession,
}


def open_session(
    entity_type: EntityType | str,
    action: ChangeAction | str,
    *,
    nav: NavigationState | dict[str, Any] | None = None,
    **kwargs: Any,
) -> EditSession:
    """Build a fresh session for a page and resume it from ``nav`` if given."""
    key = (EntityType(entity_type), ChangeAction(action))
    try:
        session_cls = SESSION_TYPES[key]
    except KeyError as e:
        raise ValueError(f"No page handles {key[0]}/{key[1]}") from e
    if not issubclass(session_cls, _AssignableSession):
        kwargs.pop("character_name", None)
    session = session_cls(**kwargs)
    if nav is not None:
        session.resume(nav)
    return session


__all__ = [
    "SESSION_TYPES",
    "open_session",
    "CreateItemSession",
    "RechargeItemSession",
    "AssignItemSession",
    "CreateConditionSession",
    "AssignConditionSession",
    "ExtendConditionSession",
    "CreatePowerSession",
    "AssignPowerSession",
    "ExtendPowerSession",
]
