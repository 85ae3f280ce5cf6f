"""Entity shapes exchanged with the entity service."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar


@dataclass
class Assignment:
    """One player's hold on a condition or power."""

    plin: str
    expiry_date: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Assignment:
        return cls(plin=data["plin"], expiry_date=data.get("expiry_date", ""))


@dataclass
class Item:
    """Physical inventory item; at most one owning PLIN."""

    code_field: ClassVar[str] = "itin"

    itin: str
    name: str
    description: str
    owner: str = ""
    expiry_date: str = ""
    remarks: str = ""
    cs_remarks: str = ""

    @property
    def code(self) -> str:
        return self.itin

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Item:
        return cls(
            itin=str(data.get("itin", "")),
            name=data.get("name", ""),
            description=data.get("description", ""),
            owner=data.get("owner", ""),
            expiry_date=data.get("expiry_date", ""),
            remarks=data.get("remarks", ""),
            cs_remarks=data.get("cs_remarks", ""),
        )


@dataclass
class _Assignable:
    code_field: ClassVar[str] = ""

    name: str
    description: str
    assignments: list[Assignment] = field(default_factory=list)
    remarks: str = ""
    cs_remarks: str = ""

    @property
    def code(self) -> str:
        return getattr(self, self.code_field)

    def plins(self) -> list[str]:
        return [a.plin for a in self.assignments]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        return cls(
            **{cls.code_field: str(data.get(cls.code_field, ""))},
            name=data.get("name", ""),
            description=data.get("description", ""),
            assignments=[Assignment.from_dict(a) for a in data.get("assignments") or []],
            remarks=data.get("remarks", ""),
            cs_remarks=data.get("cs_remarks", ""),
        )


@dataclass
class Condition(_Assignable):
    """Status effect, assignable to many players. Identified by COIN."""

    code_field: ClassVar[str] = "coin"

    coin: str = ""


@dataclass
class Power(_Assignable):
    """Ability, assignable to many players. Identified by POIN."""

    code_field: ClassVar[str] = "poin"

    poin: str = ""


Entity = Item | Condition | Power
