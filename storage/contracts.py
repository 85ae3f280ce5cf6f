"""Storage contracts: the durable medium and the record repos built on it."""

from __future__ import annotations

from typing import Protocol, TypeVar

R = TypeVar("R")


class DurableMedium(Protocol):
    """Flat string-keyed store with no transactional guarantees across keys."""

    def get(self, key: str) -> str | None:
        """Return the stored string, or None when the key was never written."""

    def set(self, key: str, value: str) -> None:
        """Overwrite the value under ``key``."""


class RecordRepo(Protocol[R]):
    """Keyed record collection: list / upsert / delete by id."""

    def list(self) -> list[R]:
        """All records in stored (insertion) order; never raises."""

    def save(self, record: R) -> None:
        """Replace the record with the same id, or append it."""

    def delete(self, record_id: str) -> None:
        """Remove the record with ``record_id``; no-op when absent."""
