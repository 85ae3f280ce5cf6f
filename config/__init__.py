"""Configuration management for Voiddex."""

from .loader import SettingsLoader, load_settings
from .schema import VoiddexSettings

__all__ = ["SettingsLoader", "VoiddexSettings", "load_settings"]
