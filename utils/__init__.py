"""Shared utilities package for the TinyClaw auth broker"""

from .storage import SettingsStore, detect_provider

__all__ = [
    "SettingsStore",
    "detect_provider",
]
