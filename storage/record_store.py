"""RecordStore - keyed record collection over a durable medium.

Architecture:
    StorageContainer → RecordStore (one per key) → DurableMedium
    - The whole collection lives under one medium key as a JSON array
    - save/delete are a full read-modify-write of that array
    - No locking: callers serialize their own calls
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from core.errors import StorageReadError
from storage.contracts import DurableMedium

logger = logging.getLogger(__name__)

R = TypeVar("R")


class RecordStore(Generic[R]):
    """Generic list/seed/upsert/delete store keyed on record ``id``.

    The first read of a key that was never written seeds it (possibly with an
    empty list). Later reads never reseed, even when every record was deleted.
    """

    def __init__(
        self,
        medium: DurableMedium,
        key: str,
        *,
        encode: Callable[[R], dict[str, Any]],
        decode: Callable[[dict[str, Any]], R],
        seed: Callable[[], list[R]] | None = None,
        on_error: Callable[[StorageReadError], None] | None = None,
        name: str | None = None,
    ) -> None:
        self.key = key
        self.name = name or key
        self._medium = medium
        self._encode = encode
        self._decode = decode
        self._seed = seed
        self._on_error = on_error

    def list(self) -> list[R]:
        """Records in stored order. Corrupt or unreadable data reads as empty."""
        try:
            raw = self._medium.get(self.key)
        except (sqlite3.Error, OSError) as e:
            self._report(StorageReadError(self.key, str(e)))
            return []

        if raw is None:
            return self._seed_medium()

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise TypeError(f"expected a JSON array, got {type(data).__name__}")
            return [self._decode(entry) for entry in data]
        except (TypeError, KeyError, ValueError, RecursionError) as e:
            self._report(StorageReadError(self.key, str(e)), exc_info=e)
            return []

    def get(self, record_id: str) -> R | None:
        for record in self.list():
            if record.id == record_id:
                return record
        return None

    def save(self, record: R) -> None:
        """Upsert: replace the record with the same id in place, else append."""
        records = self.list()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)
        self._write(records)
        logger.debug(f"[RecordStore:{self.name}] Saved {record.id}")

    def delete(self, record_id: str) -> None:
        records = self.list()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return
        self._write(remaining)
        logger.debug(f"[RecordStore:{self.name}] Deleted {record_id}")

    def _seed_medium(self) -> list[R]:
        records = list(self._seed()) if self._seed else []
        try:
            self._write(records)
        except (sqlite3.Error, OSError) as e:
            self._report(StorageReadError(self.key, f"seed write failed: {e}"))
            return records
        logger.info(f"[RecordStore:{self.name}] Initialized with {len(records)} seed record(s)")
        return records

    def _write(self, records: list[R]) -> None:
        payload = json.dumps([self._encode(r) for r in records], ensure_ascii=False)
        self._medium.set(self.key, payload)

    def _report(self, error: StorageReadError, exc_info: BaseException | None = None) -> None:
        logger.error(f"[RecordStore:{self.name}] {error}", exc_info=exc_info)
        if self._on_error is not None:
            self._on_error(error)
