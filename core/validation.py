"""Field checks shared by the edit sessions. Each raises ValidationError."""

from __future__ import annotations

from core.errors import ValidationError
from core.identifiers import is_plin

PLIN_FORMAT = "Player must be format 1234#12"


def require_text(value: str, *, field: str, label: str) -> None:
    if not value.strip():
        raise ValidationError(field, f"{label} is required.")


def check_plin(
    value: str,
    *,
    field: str = "owner",
    allow_blank: bool = False,
    sentinel: str | None = None,
    message: str = PLIN_FORMAT,
) -> None:
    """PLIN field check; optionally accepts blank or an unowned sentinel."""
    stripped = value.strip()
    if allow_blank and not stripped:
        return
    if sentinel is not None and stripped == sentinel:
        return
    if not is_plin(stripped):
        raise ValidationError(field, message)
