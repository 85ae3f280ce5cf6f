"""Core configuration schema for Voiddex using Pydantic.

This module defines the complete configuration structure with:
- Nested config groups (Storage, Validation, Mass impact, Service)
- Field validators for storage medium, year bounds, thresholds
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

# Medium keys for the two record collections
DEFAULT_CHANGES_KEY = "voiddex_stored_changes"
DEFAULT_NOTES_KEY = "voiddex_notes"

# ============================================================================
# Storage Configuration
# ============================================================================


class StorageConfig(BaseModel):
    """Durable medium selection for drafts and notes."""

    medium: Literal["sqlite", "memory"] = Field("sqlite", description="Durable medium backend")
    db_path: str = Field("~/.voiddex/voiddex.db", description="SQLite file for the sqlite medium")
    changes_key: str = Field(DEFAULT_CHANGES_KEY, description="Medium key holding stored changes")
    notes_key: str = Field(DEFAULT_NOTES_KEY, description="Medium key holding notes")
    seed_examples: bool = Field(True, description="Seed example records on first read")

    @field_validator("medium", mode="before")
    @classmethod
    def normalize_medium(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @model_validator(mode="after")
    def check_distinct_keys(self) -> StorageConfig:
        if self.changes_key == self.notes_key:
            raise ValueError("changes_key and notes_key must differ")
        return self


# ============================================================================
# Validation Configuration
# ============================================================================


class ValidationConfig(BaseModel):
    """Bounds applied by form validation before a commit."""

    min_year: int = Field(1980, description="Earliest accepted expiry year")
    max_year: int = Field(2100, description="Latest accepted expiry year")
    unowned_sentinel: str = Field("SYSTEM", description="Owner value for unowned powers")

    @model_validator(mode="after")
    def check_year_bounds(self) -> ValidationConfig:
        if self.min_year > self.max_year:
            raise ValueError(f"min_year ({self.min_year}) must not exceed max_year ({self.max_year})")
        return self


class MassImpactConfig(BaseModel):
    """Sub-record counts at which a commit asks for explicit confirmation.

    ``None`` disables the gate for that operation.
    """

    condition_extend: int | None = Field(3, gt=0)
    power_extend: int | None = Field(5, gt=0)
    condition_assign: int | None = Field(None, gt=0)
    power_assign: int | None = Field(None, gt=0)

    def threshold_for(self, entity_type: str, action: str) -> int | None:
        return getattr(self, f"{entity_type}_{action}", None)


# ============================================================================
# Entity Service Configuration
# ============================================================================


class ServiceConfig(BaseModel):
    """Entity service endpoint (None = in-memory mock)."""

    base_url: str | None = Field(None, description="Remote entity service base URL")
    timeout: float = Field(10.0, gt=0, description="Request timeout in seconds")
    latency: float = Field(0.0, ge=0, description="Simulated latency for the mock service")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        if not v:
            return None
        return v.rstrip("/")


# ============================================================================
# Top-level Settings
# ============================================================================


class VoiddexSettings(BaseModel):
    """Complete Voiddex configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    mass_impact: MassImpactConfig = Field(default_factory=MassImpactConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)
