"""Pytest configuration for Voiddex tests.

Ensures the project root is in sys.path so imports work correctly, and
provides the shared storage/service/confirmation fixtures.
"""

import asyncio
import random
import sys
from datetime import date
from pathlib import Path

import pytest

# Add project root to sys.path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from core.operations import open_session  # noqa: E402
from services.contracts import ApiResult, EntityServices  # noqa: E402
from services.mock import InMemoryEntityService, MockBackend  # noqa: E402
from services.models import Assignment, Condition, Power  # noqa: E402
from storage.container import StorageContainer  # noqa: E402
from storage.providers.memory import InMemoryMedium  # noqa: E402

TODAY = date(2025, 1, 15)
DEFAULT_EXPIRY = "01/02/2026"


def frozen_condition() -> Condition:
    return Condition(
        coin="8100",
        name="Frozen",
        description="Status effect: Frozen",
        assignments=[
            Assignment("1001#01", "31/12/2025"),
            Assignment("1002#01", "until death"),
            Assignment("1003#01", "01/06/2026"),
            Assignment("1004#01", ""),
        ],
    )


def warp_power() -> Power:
    return Power(
        poin="5100",
        name="Warp",
        description="Ability: Warp",
        assignments=[Assignment(f"{1001 + i}#01", "31/12/2030") for i in range(5)],
    )


class RecordingConfirmer:
    """Answers prompts from a script (then ``default``) and remembers them."""

    def __init__(self, *answers: bool, default: bool = True):
        self.answers = list(answers)
        self.default = default
        self.prompts = []

    def __call__(self, prompt):
        self.prompts.append(prompt)
        if self.answers:
            return self.answers.pop(0)
        return self.default

    @property
    def kinds(self):
        return [p.kind for p in self.prompts]


class HeldConfirmer(RecordingConfirmer):
    """Async confirmer that holds every answer until ``release`` is set."""

    def __init__(self, *answers: bool, default: bool = True):
        super().__init__(*answers, default=default)
        self.asked = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, prompt):
        answer = super().__call__(prompt)
        self.asked.set()
        await self.release.wait()
        return answer


class FakeHost:
    def __init__(self):
        self.visits = []

    def navigate(self, path, state=None):
        self.visits.append((path, state))

    @property
    def last(self):
        return self.visits[-1] if self.visits else None


class Clock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


class FailingWrites:
    """Entity service whose writes fail (the first ``failures`` of them, or all).

    Reads always delegate to ``inner``; once the failures are used up writes
    delegate too.
    """

    def __init__(self, inner, *, error: str = "Service unavailable", raises: bool = False, failures=None):
        self.inner = inner
        self.error = error
        self.raises = raises
        self.failures = failures
        self.attempts = 0

    async def search_by_code(self, code):
        return await self.inner.search_by_code(code)

    async def create(self, fields):
        if self._should_fail():
            return self._reject()
        return await self.inner.create(fields)

    async def update(self, code, partial_fields):
        if self._should_fail():
            return self._reject()
        return await self.inner.update(code, partial_fields)

    def _should_fail(self) -> bool:
        self.attempts += 1
        return self.failures is None or self.attempts <= self.failures

    def _reject(self):
        if self.raises:
            raise ConnectionError(self.error)
        return ApiResult.fail(self.error)


def entity_service(entity_cls, records, *, code_range, label):
    return InMemoryEntityService(entity_cls, records, code_range=code_range, label=label, rng=random.Random(1))


@pytest.fixture
def storage():
    container = StorageContainer(InMemoryMedium(), seed_examples=False)
    yield container
    container.close()


@pytest.fixture
def backend():
    return MockBackend(seed=7)


@pytest.fixture
def conditions_service():
    return entity_service(Condition, [frozen_condition()], code_range=(8200, 8999), label="Condition")


@pytest.fixture
def powers_service():
    return entity_service(Power, [warp_power()], code_range=(5200, 5999), label="Power")


@pytest.fixture
def services(backend, conditions_service, powers_service):
    """Mock items plus one known condition (COIN 8100) and power (POIN 5100)."""
    return EntityServices(items=backend.items, conditions=conditions_service, powers=powers_service)


@pytest.fixture
def confirmer():
    return RecordingConfirmer()


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def make_session(storage, services, confirmer, clock):
    """Open a page session wired to the shared fixtures; keyword args override."""

    def _make(entity_type, action, **kwargs):
        kwargs.setdefault("storage", storage)
        kwargs.setdefault("services", services)
        kwargs.setdefault("confirmer", confirmer)
        kwargs.setdefault("clock", clock)
        kwargs.setdefault("today", lambda: TODAY)
        return open_session(entity_type, action, **kwargs)

    return _make


def replace_service(services: EntityServices, **overrides) -> EntityServices:
    return EntityServices(
        items=overrides.get("items", services.items),
        conditions=overrides.get("conditions", services.conditions),
        powers=overrides.get("powers", services.powers),
    )
