"""Durable medium providers."""

from .memory import InMemoryMedium
from .sqlite import SQLiteMedium

__all__ = ["InMemoryMedium", "SQLiteMedium"]
