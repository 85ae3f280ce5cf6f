"""Records kept in the durable medium: stored changes (drafts) and notes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any


class EntityType(StrEnum):
    ITEM = "item"
    CONDITION = "condition"
    POWER = "power"


class ChangeAction(StrEnum):
    CREATE = "create"
    ASSIGN = "assign"
    EXTEND = "extend"
    RECHARGE = "recharge"


@dataclass
class StoredChange:
    """A durable snapshot of an in-progress edit, resumable later."""

    id: str
    entity_type: EntityType
    action: ChangeAction
    payload: dict[str, Any]
    created_at: float
    title: str
    subtitle: str
    is_pinned: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["entity_type"] = self.entity_type.value
        data["action"] = self.action.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredChange:
        payload = data["payload"]
        if not isinstance(payload, dict):
            raise TypeError(f"stored change {data.get('id')!r} payload must be an object")
        return cls(
            id=str(data["id"]),
            entity_type=EntityType(data["entity_type"]),
            action=ChangeAction(data["action"]),
            payload=payload,
            created_at=float(data["created_at"]),
            title=data.get("title", ""),
            subtitle=data.get("subtitle", ""),
            is_pinned=bool(data.get("is_pinned", False)),
        )


@dataclass
class Note:
    """A personal note linked to identifiers in ``KIND:VALUE`` form."""

    id: str
    title: str
    content: str
    linked_ids: list[str] = field(default_factory=list)
    updated_at: float = 0.0
    is_pinned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Note:
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            content=data.get("content", ""),
            linked_ids=list(data.get("linked_ids") or []),
            updated_at=float(data.get("updated_at", 0.0)),
            is_pinned=bool(data.get("is_pinned", False)),
        )
