"""Entity service contract consumed by edit sessions.

Every call is asynchronous and may raise; a raised exception and an
unsuccessful ``ApiResult`` are both treated as a failed commit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar

from services.models import Condition, Item, Power
from storage.models import EntityType

T = TypeVar("T")
E = TypeVar("E")


@dataclass
class ApiResult(Generic[T]):
    """Standardized service response wrapper."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: T) -> ApiResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> ApiResult[T]:
        return cls(success=False, error=error)


class EntityService(Protocol[E]):
    """search/create/update for one entity kind."""

    async def search_by_code(self, code: str) -> ApiResult[E]:
        """Exact-match lookup by ITIN/COIN/POIN."""

    async def create(self, fields: dict[str, Any]) -> ApiResult[E]:
        """Create an entity; the service allocates its code."""

    async def update(self, code: str, partial_fields: dict[str, Any]) -> ApiResult[E]:
        """Shallow-merge ``partial_fields`` into the entity with ``code``."""


@dataclass
class EntityServices:
    """The three per-kind services a page may talk to."""

    items: EntityService[Item]
    conditions: EntityService[Condition]
    powers: EntityService[Power]

    def for_type(self, entity_type: EntityType | str) -> EntityService[Any]:
        kind = EntityType(entity_type)
        if kind is EntityType.ITEM:
            return self.items
        if kind is EntityType.CONDITION:
            return self.conditions
        return self.powers
