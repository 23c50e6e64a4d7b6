"""
Settings component - Store-wide settings management.
"""

from .component import SETTINGS_PATH, SettingsStore

__all__ = [
    "SETTINGS_PATH",
    "SettingsStore",
]
