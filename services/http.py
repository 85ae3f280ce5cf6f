"""
Remote entity service: async HTTP client per entity kind.

Endpoints, relative to the configured base URL:
    GET   /{collection}/{code}
    POST  /{collection}
    PATCH /{collection}/{code}

A 404 becomes an unsuccessful ``ApiResult``; other non-2xx responses become
an unsuccessful result carrying the status. Transport errors propagate so
the edit session records them as a commit failure.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

import httpx

from config.schema import ServiceConfig
from services.contracts import ApiResult, EntityServices
from services.models import Condition, Item, Power

logger = logging.getLogger(__name__)

E = TypeVar("E", Item, Condition, Power)


class RemoteEntityService(Generic[E]):
    def __init__(self, client: httpx.AsyncClient, collection: str, entity_cls: type[E], label: str):
        self._client = client
        self._collection = collection
        self._entity_cls = entity_cls
        self._label = label

    async def search_by_code(self, code: str) -> ApiResult[E]:
        r = await self._client.get(f"/{self._collection}/{code}")
        if r.status_code == 404:
            return ApiResult.fail(f"{self._label} not found")
        return self._to_result(r)

    async def create(self, fields: dict[str, Any]) -> ApiResult[E]:
        r = await self._client.post(f"/{self._collection}", json=fields)
        return self._to_result(r)

    async def update(self, code: str, partial_fields: dict[str, Any]) -> ApiResult[E]:
        r = await self._client.patch(f"/{self._collection}/{code}", json=partial_fields)
        if r.status_code == 404:
            return ApiResult.fail(f"{self._label} not found during update")
        return self._to_result(r)

    def _to_result(self, r: httpx.Response) -> ApiResult[E]:
        if r.is_success:
            return ApiResult.ok(self._entity_cls.from_dict(r.json()))
        logger.warning(f"[RemoteEntityService] {r.request.method} {r.request.url} -> {r.status_code}")
        detail = r.text.strip() or r.reason_phrase
        return ApiResult.fail(f"{self._label} request failed ({r.status_code}): {detail}")


class RemoteBackend:
    """One shared ``httpx.AsyncClient`` behind the three per-kind services."""

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self._client = httpx.AsyncClient(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self.items = RemoteEntityService(self._client, "items", Item, "Item")
        self.conditions = RemoteEntityService(self._client, "conditions", Condition, "Condition")
        self.powers = RemoteEntityService(self._client, "powers", Power, "Power")

    @classmethod
    def from_config(cls, config: ServiceConfig, **kwargs: Any) -> RemoteBackend:
        if not config.base_url:
            raise RuntimeError("service.base_url is required for the remote entity service")
        return cls(config.base_url, timeout=config.timeout, **kwargs)

    def services(self) -> EntityServices:
        return EntityServices(items=self.items, conditions=self.conditions, powers=self.powers)

    async def aclose(self) -> None:
        await self._client.aclose()
