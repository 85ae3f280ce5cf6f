"""Lifecycle state machine for edit sessions.

Fail-loud policy:
- Invalid state strings raise immediately.
- Illegal transitions raise immediately.
"""

from __future__ import annotations

from enum import StrEnum

from core.errors import IllegalTransitionError


class EditSessionState(StrEnum):
    SEARCHING = "searching"
    LOADED = "loaded"
    DRAFTED = "drafted"
    COMMITTING = "committing"
    COMMITTED = "committed"
    FAILED = "failed"


def parse_edit_session_state(value: str | None) -> EditSessionState:
    if value is None:
        raise IllegalTransitionError("Edit session state is required")
    try:
        return EditSessionState(value.lower())
    except ValueError as e:
        raise IllegalTransitionError(f"Invalid edit session state: {value}") from e


_ALLOWED: set[tuple[EditSessionState, EditSessionState]] = {
    (EditSessionState.SEARCHING, EditSessionState.LOADED),
    (EditSessionState.LOADED, EditSessionState.DRAFTED),
    (EditSessionState.LOADED, EditSessionState.COMMITTING),
    (EditSessionState.DRAFTED, EditSessionState.COMMITTING),
    (EditSessionState.COMMITTING, EditSessionState.COMMITTED),
    (EditSessionState.COMMITTING, EditSessionState.FAILED),
    (EditSessionState.FAILED, EditSessionState.DRAFTED),
    (EditSessionState.FAILED, EditSessionState.COMMITTING),
    (EditSessionState.COMMITTED, EditSessionState.LOADED),
    (EditSessionState.COMMITTED, EditSessionState.DRAFTED),
    (EditSessionState.COMMITTED, EditSessionState.COMMITTING),
}


def assert_edit_session_transition(
    current: EditSessionState | None,
    target: EditSessionState,
    *,
    reason: str,
) -> None:
    if current is None:
        if target != EditSessionState.SEARCHING:
            raise IllegalTransitionError(f"Illegal edit session transition: <new> -> {target} ({reason})")
        return
    if current == target:
        return
    # reset is always reachable
    if target == EditSessionState.SEARCHING:
        return
    if (current, target) not in _ALLOWED:
        raise IllegalTransitionError(f"Illegal edit session transition: {current} -> {target} ({reason})")
