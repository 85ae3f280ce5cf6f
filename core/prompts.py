"""Confirmation prompts raised by edit sessions and guards.

The host decides how a prompt is shown; a session only needs a yes/no back.
Confirmers may be plain callables or coroutine functions.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum

DISCARD_MESSAGE = "You have unsaved changes. Are you sure you want to discard them?"
STALE_DRAFT_MESSAGE = "The object may have been changed since this draft was stored. Proceed?"


class PromptKind(StrEnum):
    DISCARD_CHANGES = "discard_changes"
    STALE_DRAFT = "stale_draft"
    MASS_IMPACT = "mass_impact"
    UNASSIGN = "unassign"
    UNVERIFIED_LINK = "unverified_link"
    DELETE = "delete"


@dataclass(frozen=True)
class ConfirmationPrompt:
    kind: PromptKind
    title: str
    message: str
    count: int | None = None


Confirmer = Callable[[ConfirmationPrompt], "bool | Awaitable[bool]"]


async def ask(confirmer: Confirmer, prompt: ConfirmationPrompt) -> bool:
    answer = confirmer(prompt)
    if inspect.isawaitable(answer):
        answer = await answer
    return bool(answer)


def discard_prompt() -> ConfirmationPrompt:
    return ConfirmationPrompt(PromptKind.DISCARD_CHANGES, "Discard Changes?", DISCARD_MESSAGE)


def stale_draft_prompt() -> ConfirmationPrompt:
    return ConfirmationPrompt(PromptKind.STALE_DRAFT, "Process Draft?", STALE_DRAFT_MESSAGE)


def mass_impact_prompt(count: int) -> ConfirmationPrompt:
    return ConfirmationPrompt(
        PromptKind.MASS_IMPACT,
        "Confirm Mass Update",
        f"You are about to update the expiry date for {count} players. Do you want to proceed?",
        count=count,
    )


def always(answer: bool) -> Confirmer:
    """Confirmer that gives the same answer every time (headless hosts, tests)."""

    def _confirm(prompt: ConfirmationPrompt) -> bool:
        return answer

    return _confirm
