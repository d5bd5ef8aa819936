"""Configuration management for Achievers."""
from __future__ import annotations

from achievers.config.paths import AchieversPaths, get_paths, reset_paths
from achievers.config.settings import Settings, get_settings_path, settings

__all__ = [
    "AchieversPaths",
    "Settings",
    "get_paths",
    "get_settings_path",
    "reset_paths",
    "settings",
]
