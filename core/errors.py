"""Error taxonomy for draft and change reconciliation.

Nothing here is fatal to the process. Validation and not-found errors are
surfaced on the page; commit failures and storage read errors are recorded
and reported, never raised to the caller of a session or store.
"""

from __future__ import annotations


class VoiddexError(Exception):
    """Base class for Voiddex errors."""


class ValidationError(VoiddexError):
    """A form field failed local validation; blocks submission."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class NotFoundError(VoiddexError):
    """An entity search returned no match."""

    def __init__(self, kind: str, code: str):
        super().__init__(f"{kind} {code} not found")
        self.kind = kind
        self.code = code


class CommitFailure(VoiddexError):
    """The entity service rejected a write or the call raised."""

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class StorageReadError(VoiddexError):
    """A durable payload could not be read or decoded."""

    def __init__(self, key: str, detail: str):
        super().__init__(f"Failed to read '{key}': {detail}")
        self.key = key
        self.detail = detail


class IllegalTransitionError(RuntimeError):
    """An edit session was asked to move between unconnected states."""
