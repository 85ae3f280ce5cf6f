"""Runtime wiring helpers for storage medium selection."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Literal

from config.schema import StorageConfig
from core.errors import StorageReadError
from storage.container import StorageContainer
from storage.contracts import DurableMedium
from storage.providers.memory import InMemoryMedium
from storage.providers.sqlite.medium import SQLiteMedium

StorageMedium = Literal["sqlite", "memory"]


def build_storage_container(
    config: StorageConfig | None = None,
    *,
    medium: DurableMedium | None = None,
    env: Mapping[str, str] | None = None,
    on_error: Callable[[StorageReadError], None] | None = None,
) -> StorageContainer:
    """Build a storage container from settings/environment.

    An explicitly injected ``medium`` wins over both.
    """
    config = config or StorageConfig()
    env_map = env if env is not None else os.environ

    if medium is None:
        resolved = _resolve_medium(env_map.get("VOIDDEX_STORAGE_MEDIUM", config.medium))
        if resolved == "memory":
            medium = InMemoryMedium()
        else:
            db_path = env_map.get("VOIDDEX_DB_PATH") or config.db_path
            medium = SQLiteMedium(db_path=Path(db_path).expanduser())

    return StorageContainer(
        medium,
        changes_key=config.changes_key,
        notes_key=config.notes_key,
        seed_examples=config.seed_examples,
        on_error=on_error,
    )


def _resolve_medium(raw: str | None) -> StorageMedium:
    value = (raw or "sqlite").strip().lower()
    if value in {"", "sqlite"}:
        return "sqlite"
    if value == "memory":
        return "memory"
    raise RuntimeError(
        f"Invalid VOIDDEX_STORAGE_MEDIUM value: {raw!r}. "
        "Supported values: sqlite, memory."
    )
