"""Example records written on the first read of an uninitialized medium."""

from __future__ import annotations

import time

from storage.models import ChangeAction, EntityType, Note, StoredChange

_DAY = 86400.0


def example_changes(now: float | None = None) -> list[StoredChange]:
    """One draft per (entity type, action) pair the pages support."""
    now = time.time() if now is None else now
    return [
        StoredChange(
            id="draft-item-create",
            entity_type=EntityType.ITEM,
            action=ChangeAction.CREATE,
            payload={
                "name": "Advanced Medkit",
                "description": "Heals critical wounds instantly. Restricted access.",
                "owner": "1005#22",
                "expiry_date": "31/12/2026",
                "remarks": "Prototype unit.",
                "cs_remarks": "",
            },
            created_at=now - 900,
            title="Advanced Medkit",
            subtitle="Create Item",
            is_pinned=True,
        ),
        StoredChange(
            id="draft-item-recharge",
            entity_type=EntityType.ITEM,
            action=ChangeAction.RECHARGE,
            payload={
                "item": {
                    "itin": "1001",
                    "name": "Plasma Rifle",
                    "description": "Standard issue Plasma Rifle.",
                    "owner": "1001#01",
                    "expiry_date": "31/12/2025",
                },
                "expiry_date": "31/12/2030",
            },
            created_at=now - 800,
            title="Plasma Rifle",
            subtitle="Recharge ITIN: 1001",
        ),
        StoredChange(
            id="draft-item-assign",
            entity_type=EntityType.ITEM,
            action=ChangeAction.ASSIGN,
            payload={
                "item": {
                    "itin": "1002",
                    "name": "Medigel Pack",
                    "description": "Standard issue Medigel.",
                    "owner": "1002#01",
                },
                "owner": "5555#55",
            },
            created_at=now - 700,
            title="Medigel Pack",
            subtitle="Assign ITIN: 1002",
        ),
        StoredChange(
            id="draft-cond-create",
            entity_type=EntityType.CONDITION,
            action=ChangeAction.CREATE,
            payload={
                "name": "Nano-Virus",
                "description": "Slowly consumes organic matter.",
                "owner": "",
                "expiry_date": "until death",
                "remarks": "Quarantine immediately.",
                "cs_remarks": "",
            },
            created_at=now - 600,
            title="Nano-Virus",
            subtitle="Create Condition",
        ),
        StoredChange(
            id="draft-cond-extend",
            entity_type=EntityType.CONDITION,
            action=ChangeAction.EXTEND,
            payload={
                "condition": {
                    "coin": "8005",
                    "name": "Frozen",
                    "description": "Status effect: Frozen",
                    "assignments": [
                        {"plin": "1005#01", "expiry_date": "31/12/2025"},
                        {"plin": "1006#01", "expiry_date": "31/12/2025"},
                    ],
                },
                "expiry_date": "01/01/2028",
                "selected_plins": ["1005#01", "1006#01"],
            },
            created_at=now - 500,
            title="Frozen",
            subtitle="Extend COIN: 8005",
        ),
        StoredChange(
            id="draft-cond-assign",
            entity_type=EntityType.CONDITION,
            action=ChangeAction.ASSIGN,
            payload={
                "condition": {
                    "coin": "8006",
                    "name": "Burning",
                    "description": "Status effect: Burning",
                    "assignments": [{"plin": "2001#01", "expiry_date": "01/01/2025"}],
                },
                "new_owner": "5555#55",
                "new_expiry": "01/01/2026",
                "selected_remove_plins": [],
            },
            created_at=now - 400,
            title="Burning",
            subtitle="Assign COIN: 8006",
        ),
        StoredChange(
            id="draft-power-create",
            entity_type=EntityType.POWER,
            action=ChangeAction.CREATE,
            payload={
                "name": "Solar Flare",
                "description": "Emits a blinding burst of light affecting all targets in line of sight.",
                "owner": "SYSTEM",
                "expiry_date": "until death",
                "remarks": "",
                "cs_remarks": "",
            },
            created_at=now - 300,
            title="Solar Flare",
            subtitle="Create Power",
        ),
        StoredChange(
            id="draft-power-extend",
            entity_type=EntityType.POWER,
            action=ChangeAction.EXTEND,
            payload={
                "power": {
                    "poin": "5002",
                    "name": "Warp",
                    "description": "Biotic Warp ability.",
                    "assignments": [{"plin": "1002#01", "expiry_date": "31/12/2025"}],
                },
                "expiry_date": "31/12/2029",
                "selected_plins": ["1002#01"],
            },
            created_at=now - 200,
            title="Warp",
            subtitle="Extend POIN: 5002",
        ),
        StoredChange(
            id="draft-power-assign",
            entity_type=EntityType.POWER,
            action=ChangeAction.ASSIGN,
            payload={
                "power": {
                    "poin": "5005",
                    "name": "Shockwave",
                    "description": "Biotic Shockwave.",
                    "assignments": [],
                },
                "new_owner": "9999#99",
                "new_expiry": "01/01/2030",
                "selected_remove_plins": [],
            },
            created_at=now - 100,
            title="Shockwave",
            subtitle="Assign POIN: 5005",
        ),
    ]


def example_notes(now: float | None = None) -> list[Note]:
    now = time.time() if now is None else now
    return [
        Note(
            id="note-mock-1",
            title="Rifle Maintenance",
            content="The plasma rifle (ITIN 1001) is jamming when overheated. Needs a new thermal clip connector.",
            linked_ids=["ITIN:1001"],
            updated_at=now - _DAY,
            is_pinned=True,
        ),
        Note(
            id="note-mock-2",
            title="Quarantine Protocol",
            content="Subject exhibiting signs of Radiation Sickness (COIN 8001). Isolate immediately.",
            linked_ids=["COIN:8001"],
            updated_at=now - 2 * _DAY,
        ),
        Note(
            id="note-mock-3",
            title="Biotic Training",
            content="Reviewing Biotic Throw (POIN 5001) technique. Assignments pending for new recruits.",
            linked_ids=["POIN:5001"],
            updated_at=now - 3 * _DAY,
        ),
    ]
