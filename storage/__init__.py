from .container import StorageContainer
from .contracts import DurableMedium, RecordRepo
from .models import ChangeAction, EntityType, Note, StoredChange
from .record_store import RecordStore

__all__ = [
    "StorageContainer",
    "DurableMedium",
    "RecordRepo",
    "RecordStore",
    "StoredChange",
    "Note",
    "EntityType",
    "ChangeAction",
]
