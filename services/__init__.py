"""Entity service layer: contracts, an in-memory mock and an HTTP client."""

from __future__ import annotations

from config.schema import ServiceConfig

from .contracts import ApiResult, EntityService, EntityServices
from .http import RemoteBackend
from .mock import MockBackend
from .models import Assignment, Condition, Entity, Item, Power


def build_services(config: ServiceConfig | None = None, *, seed: int = 0) -> EntityServices:
    """Remote services when a base URL is configured, otherwise the mock."""
    config = config or ServiceConfig()
    if config.base_url:
        return RemoteBackend.from_config(config).services()
    return MockBackend(seed=seed, latency=config.latency).services()


__all__ = [
    "ApiResult",
    "EntityService",
    "EntityServices",
    "RemoteBackend",
    "MockBackend",
    "Assignment",
    "Condition",
    "Entity",
    "Item",
    "Power",
    "build_services",
]
