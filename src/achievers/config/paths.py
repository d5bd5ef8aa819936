"""Centralized path management for Achievers.

Follows XDG Base Directory Specification:
- Config: $XDG_CONFIG_HOME/achievers (default: ~/.config/achievers)

Workspace artifacts (records, call metrics, debug log, prompt overrides)
live under ./.achievers/ in the working directory.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path


def _xdg_config_home() -> Path:
    """Get XDG_CONFIG_HOME, defaulting to ~/.config."""
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


@dataclass
class AchieversPaths:
    """Centralized path management following the XDG base directory layout."""

    workspace: Path  # Current working directory

    _config_home: Path = field(default_factory=_xdg_config_home)

    # === WORKSPACE PATHS ===

    @property
    def workspace_config(self) -> Path:
        """Workspace .achievers/ directory."""
        return self.workspace / ".achievers"

    @property
    def accomplishments(self) -> Path:
        """Accomplishment records: .achievers/accomplishments.jsonl"""
        return self.workspace_config / "accomplishments.jsonl"

    @property
    def ai_calls(self) -> Path:
        """LLM call metrics: .achievers/ai-calls.jsonl"""
        return self.workspace_config / "ai-calls.jsonl"

    @property
    def prompt_overrides_dir(self) -> Path:
        """Workspace prompt overrides: .achievers/prompts/"""
        return self.workspace_config / "prompts"

    @property
    def debug_log(self) -> Path:
        """Debug log: .achievers/debug.log"""
        return self.workspace_config / "debug.log"

    # === GLOBAL PATHS (XDG compliant) ===

    @property
    def global_config_dir(self) -> Path:
        """Global config: ~/.config/achievers/"""
        return self._config_home / "achievers"

    @property
    def global_settings(self) -> Path:
        """Global settings file: ~/.config/achievers/settings.json"""
        return self.global_config_dir / "settings.json"

    # === DIRECTORY CREATION ===

    def ensure_workspace_dirs(self) -> None:
        """Create the workspace .achievers/ directory."""
        self.workspace_config.mkdir(parents=True, exist_ok=True)


# Singleton instance
_paths: AchieversPaths | None = None


def get_paths(workspace: Path | None = None) -> AchieversPaths:
    """Get the paths singleton.

    On first call, optionally set the workspace directory.
    Subsequent calls return the same instance.

    Args:
        workspace: The workspace directory. If not provided on first call,
                   defaults to current working directory.

    Returns:
        The AchieversPaths singleton instance.
    """
    global _paths
    if _paths is None:
        _paths = AchieversPaths(workspace=workspace or Path.cwd())
    return _paths


def reset_paths() -> None:
    """Reset paths singleton (for testing)."""
    global _paths
    _paths = None
