"""In-memory entity service with a generated, reproducible dataset.

Stands in for the remote entity service in tests and offline demos:
25 items (ITIN 1001-1025), 25 conditions (COIN 8001-8025), 25 powers
(POIN 5001-5025), duplicate-code test objects at 9999, and a 25-player
roster (PLIN 1001#01-1025#01).
"""

from __future__ import annotations

import asyncio
import copy
import random
from typing import Any, Generic, TypeVar

from services.contracts import ApiResult, EntityServices
from services.models import Assignment, Condition, Item, Power

E = TypeVar("E", Item, Condition, Power)

MOCK_PLAYER_NAMES = [
    "Commander Shepherd", "Liara T'Soni", "Garrus Vakarian", "Tali'Zorah", "Urdnot Wrex",
    "Kaidan Alenko", "Ashley Williams", "Joker Moreau", "Dr. Chakwas", "Miranda Lawson",
    "Jacob Taylor", "Mordin Solus", "Jack", "Grunt", "Thane Krios", "Samara", "Legion",
    "Zaeed Massani", "Kasumi Goto", "Javik", "James Vega", "EDI", "Admiral Anderson",
    "Illusive Man", "Aria T'Loak",
]

ITEM_NAMES = [
    "Plasma Rifle", "Medigel Pack", "Omni-tool v1", "Kinetic Barrier", "Thermal Clip",
    "Element Zero Core", "Heavy Pistol", "Sniper Rifle", "Biotic Amp", "Tech Armor Generator",
    "Assault Rifle", "Shotgun", "Submachine Gun", "Grenade Launcher", "Rocket Launcher",
    "Arc Projector", "Flamethrower", "Cryo Blaster", "Particle Rifle", "Cain Nuke Launcher",
    "Black Widow", "Carnifex Hand Cannon", "Geth Pulse Rifle", "Mattock Rifle", "M-8 Avenger",
]

CONDITION_NAMES = [
    "Radiation Poisoning", "Broken Bone", "Concussion", "Exhaustion", "Frozen",
    "Burning", "Poisoned", "Stunned", "Bleeding", "Blinded",
    "Deafened", "Paralyzed", "Petrified", "Charmed", "Frightened",
    "Invisible", "Hasted", "Slowed", "Weakened", "Empowered",
    "Cursed", "Blessed", "Sleeping", "Unconscious", "Dead",
]

POWER_NAMES = [
    "Biotic Throw", "Warp", "Singularity", "Pull", "Shockwave",
    "Charge", "Nova", "Barrier", "Stasis", "Reave",
    "Overload", "Incinerate", "Cryo Blast", "AI Hacking", "Combat Drone",
    "Tech Armor", "Tactical Cloak", "Energy Drain", "Adrenaline Rush", "Concussive Shot",
    "Fortification", "Geth Shield Boost", "Slam", "Dark Channel", "Flare",
]

DUPLICATE_TEST_CODE = "9999"


def build_roster() -> dict[str, str]:
    return {f"{1001 + i}#01": name for i, name in enumerate(MOCK_PLAYER_NAMES)}


PLAYERS = build_roster()


def character_name(plin: str, roster: dict[str, str] | None = None) -> str:
    """Readable name for a PLIN; unknown well-formed PLINs get a placeholder."""
    roster = PLAYERS if roster is None else roster
    if plin in roster:
        return roster[plin]
    if not plin or "#" not in plin or plin == "SYSTEM":
        return ""
    digits = "".join(ch for ch in plin.split("#", 1)[0] if ch.isdigit())
    if not digits:
        return ""
    return "Jane Doe" if int(digits) % 2 == 0 else "John Doe"


class InMemoryEntityService(Generic[E]):
    """search/create/update over a list of one entity kind."""

    def __init__(
        self,
        entity_cls: type[E],
        records: list[E],
        *,
        code_range: tuple[int, int],
        label: str,
        rng: random.Random,
        latency: float = 0.0,
    ) -> None:
        self._entity_cls = entity_cls
        self._initial = copy.deepcopy(records)
        self._records = copy.deepcopy(records)
        self._code_range = code_range
        self._label = label
        self._rng = rng
        self._latency = latency

    async def search_by_code(self, code: str) -> ApiResult[E]:
        await self._delay()
        for record in self._records:
            if record.code == code:
                return ApiResult.ok(copy.deepcopy(record))
        return ApiResult.fail(f"{self._label} not found")

    async def create(self, fields: dict[str, Any]) -> ApiResult[E]:
        await self._delay()
        low, high = self._code_range
        code = str(self._rng.randint(low, high))
        record = self._entity_cls.from_dict({**fields, self._entity_cls.code_field: code})
        self._records.append(record)
        return ApiResult.ok(copy.deepcopy(record))

    async def update(self, code: str, partial_fields: dict[str, Any]) -> ApiResult[E]:
        await self._delay()
        for index, record in enumerate(self._records):
            if record.code == code:
                merged = {**record.to_dict(), **partial_fields, self._entity_cls.code_field: code}
                self._records[index] = self._entity_cls.from_dict(merged)
                return ApiResult.ok(copy.deepcopy(self._records[index]))
        return ApiResult.fail(f"{self._label} not found during update")

    def all(self) -> list[E]:
        return copy.deepcopy(self._records)

    def reset(self) -> None:
        self._records = copy.deepcopy(self._initial)

    async def _delay(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)


class MockBackend:
    """The three in-memory services plus roster, global search and reset."""

    def __init__(self, *, seed: int = 0, latency: float = 0.0) -> None:
        self._rng = random.Random(seed)
        self.roster = build_roster()
        self.items = InMemoryEntityService(
            Item, self._initial_items(), code_range=(1000, 9999), label="Item", rng=self._rng, latency=latency
        )
        self.conditions = InMemoryEntityService(
            Condition, self._initial_conditions(), code_range=(8000, 9998), label="Condition", rng=self._rng,
            latency=latency,
        )
        self.powers = InMemoryEntityService(
            Power, self._initial_powers(), code_range=(5000, 7998), label="Power", rng=self._rng, latency=latency
        )

    def services(self) -> EntityServices:
        return EntityServices(items=self.items, conditions=self.conditions, powers=self.powers)

    def character_name(self, plin: str) -> str:
        return character_name(plin, self.roster)

    def reset(self) -> None:
        self.items.reset()
        self.conditions.reset()
        self.powers.reset()

    async def global_search(self, query: str) -> ApiResult[list[Item | Condition | Power]]:
        """Partial match on name, code or owner PLIN across all three kinds."""
        lowered = query.lower()
        items = [
            i for i in self.items.all()
            if lowered in i.name.lower() or lowered in i.owner.lower() or query in i.itin
        ]
        conditions = [
            c for c in self.conditions.all()
            if lowered in c.name.lower() or any(lowered in p.lower() for p in c.plins()) or query in c.coin
        ]
        powers = [
            p for p in self.powers.all()
            if lowered in p.name.lower() or any(lowered in q.lower() for q in p.plins()) or query in p.poin
        ]
        return ApiResult.ok([*items, *conditions, *powers])

    # ── Dataset ──

    def _pick_assignments(self, low: int, high: int) -> list[Assignment]:
        count = self._rng.randint(low, high)
        return [Assignment(plin, "31/12/2030") for plin in self._rng.sample(list(self.roster), count)]

    def _initial_items(self) -> list[Item]:
        plins = list(self.roster)
        items = [
            Item(
                itin=str(1001 + i),
                name=name,
                description=f"Standard issue {name}.",
                owner=plins[i % len(plins)],
                expiry_date="31/12/2025",
                remarks="Standard operational condition.",
            )
            for i, name in enumerate(ITEM_NAMES)
        ]
        items.append(Item(
            itin=DUPLICATE_TEST_CODE,
            name="Omni-Blade (Item)",
            description="Physical blade attachment.",
            owner="1001#01",
            expiry_date="01/01/2030",
        ))
        return items

    def _initial_conditions(self) -> list[Condition]:
        conditions = [
            Condition(
                coin=str(8001 + i),
                name=name,
                description=f"Status effect: {name}",
                assignments=self._pick_assignments(1, 10),
                remarks="Medical bay attention required if severe.",
            )
            for i, name in enumerate(CONDITION_NAMES)
        ]
        conditions.append(Condition(
            coin=DUPLICATE_TEST_CODE,
            name="Omni-Rot (Condition)",
            description="Tech virus affecting implants.",
            assignments=[Assignment("1001#01", "01/01/2030")],
        ))
        return conditions

    def _initial_powers(self) -> list[Power]:
        powers = [
            Power(
                poin=str(5001 + i),
                name=name,
                description=f"Ability: {name}",
                assignments=self._pick_assignments(1, 10),
                remarks="Requires cooldown between uses.",
            )
            for i, name in enumerate(POWER_NAMES)
        ]
        powers.append(Power(
            poin=DUPLICATE_TEST_CODE,
            name="Omni-Slash (Power)",
            description="Tech attack ability.",
            assignments=[Assignment("1001#01", "01/01/2030")],
        ))
        return powers
