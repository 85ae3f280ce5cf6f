"""Dirty-state tracking: canonical baseline vs. live fields, plus the navigation guard."""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from core.prompts import Confirmer, ask, discard_prompt

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Cannot canonicalize {type(value).__name__}")


def canonicalize(fields: Mapping[str, Any]) -> str:
    """Field-name-sorted JSON; sets serialize as sorted lists."""
    return json.dumps(fields, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=_json_default)


class DirtyStateTracker:
    """Compares live editable fields against the last clean snapshot.

    No baseline means nothing is loaded, which is never dirty. Right after a
    successful commit dirtiness is suppressed until the next edit.
    """

    def __init__(self) -> None:
        self._baseline: str | None = None
        self._suppressed = False

    @property
    def baseline(self) -> str | None:
        return self._baseline

    def reset(self, fields: Mapping[str, Any]) -> None:
        self._baseline = canonicalize(fields)
        self._suppressed = False

    def clear(self) -> None:
        self._baseline = None
        self._suppressed = False

    def suppress(self) -> None:
        self._suppressed = True

    def touch(self) -> None:
        self._suppressed = False

    def is_dirty(self, fields: Mapping[str, Any]) -> bool:
        if self._baseline is None or self._suppressed:
            return False
        return canonicalize(fields) != self._baseline


class NavigationGuard:
    """Routes navigation-triggering actions through a discard confirmation."""

    def __init__(self, is_dirty: Callable[[], bool], confirmer: Confirmer):
        self._is_dirty = is_dirty
        self._confirmer = confirmer

    async def confirm_and_run(self, action: Callable[[], Any]) -> bool:
        """Run ``action`` unless there are unsaved edits the user declines to discard.

        Returns whether the action ran.
        """
        if self._is_dirty() and not await ask(self._confirmer, discard_prompt()):
            logger.debug("[NavigationGuard] Navigation cancelled, unsaved changes kept")
            return False
        result = action()
        if inspect.isawaitable(result):
            await result
        return True

    def should_warn_before_unload(self) -> bool:
        """Advisory hint for tab close; the platform decides whether to honour it."""
        return self._is_dirty()
