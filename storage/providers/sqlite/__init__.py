"""SQLite storage provider implementations."""

from .medium import SQLiteMedium

__all__ = ["SQLiteMedium"]
