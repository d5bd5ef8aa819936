"""Configuration and settings persistence."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from achievers.config.paths import get_paths

logger = logging.getLogger(__name__)

DEFAULT_DEPLOYMENT_ID = "deaf6d11f22b1764"  # gpt-4o
DEFAULT_API_VERSION = "2023-05-15"
DEFAULT_TEMPERATURE = 0.82
DEFAULT_WORD_LIMIT = 60
DEFAULT_STATEMENT_WORD_LIMIT = 100


def get_settings_path() -> Path:
    """Get the path to the settings file."""
    return get_paths().global_settings


class Settings:
    """Persistent settings for Achievers."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load settings from disk."""
        path = get_settings_path()
        if path.exists():
            try:
                self._data = json.loads(path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                self._data = {}
        else:
            self._data = {}

    def _save(self) -> None:
        """Save settings to disk."""
        path = get_settings_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self._data, indent=2), encoding="utf-8")
            logger.info("Saved settings to %s", path)
        except OSError as e:
            logger.error("Failed to save settings: %s", e)

    def set(self, key: str, value: Any) -> None:
        """Set a setting value and persist to disk."""
        self._data[key] = value
        self._save()

    # --- AI Core credentials ---

    def _get_ai_core(self) -> dict[str, Any]:
        raw = self._data.get("ai_core", {})
        if isinstance(raw, dict):
            return raw
        return {}

    def _set_ai_core_value(self, key: str, value: Any) -> None:
        ai_core = self._get_ai_core()
        if value in (None, ""):
            ai_core.pop(key, None)
        else:
            ai_core[key] = value
        self.set("ai_core", ai_core)

    def _credential(self, key: str, env_var: str) -> str | None:
        """Resolve a credential. Priority: env var > settings."""
        from_env = os.environ.get(env_var)
        if from_env:
            return from_env
        value = self._get_ai_core().get(key)
        return str(value) if value else None

    @property
    def auth_url(self) -> str | None:
        """Credential-exchange base URL (the token endpoint host)."""
        return self._credential("url", "AICORE_AUTH_URL")

    @property
    def client_id(self) -> str | None:
        """OAuth client id for the credential exchange."""
        return self._credential("client_id", "AICORE_CLIENT_ID")

    @property
    def client_secret(self) -> str | None:
        """OAuth client secret for the credential exchange."""
        return self._credential("client_secret", "AICORE_CLIENT_SECRET")

    @property
    def api_url(self) -> str | None:
        """Inference API base URL."""
        return self._credential("api_url", "AICORE_API_URL")

    @property
    def resource_group(self) -> str:
        """Resource group header value.

        Priority: AICORE_RESOURCE_GROUP env var > settings > "default"
        """
        from_env = os.environ.get("AICORE_RESOURCE_GROUP")
        if from_env:
            return from_env
        return str(self._get_ai_core().get("resource_group", "default"))

    # --- Model deployment ---

    @property
    def deployment_id(self) -> str:
        """Chat-completion deployment identifier."""
        return str(self._get_ai_core().get("deployment_id", DEFAULT_DEPLOYMENT_ID))

    @property
    def api_version(self) -> str:
        """API version query parameter sent with completions."""
        return str(self._get_ai_core().get("api_version", DEFAULT_API_VERSION))

    @property
    def temperature(self) -> float:
        """Sampling temperature for completions."""
        raw = self._get_ai_core().get("temperature", DEFAULT_TEMPERATURE)
        try:
            return float(raw)
        except (TypeError, ValueError):
            return DEFAULT_TEMPERATURE

    @property
    def cache_tokens(self) -> bool:
        """Reuse access tokens until they expire (default off)."""
        return bool(self._get_ai_core().get("cache_tokens", False))

    @cache_tokens.setter
    def cache_tokens(self, value: bool) -> None:
        self._set_ai_core_value("cache_tokens", bool(value))

    # --- Submission limits ---

    def _get_limits(self) -> dict[str, Any]:
        raw = self._data.get("limits", {})
        if isinstance(raw, dict):
            return raw
        return {}

    def _int_limit(self, key: str, default: int) -> int:
        raw = self._get_limits().get(key, default)
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default

    @property
    def word_limit(self) -> int:
        """Per-field word limit for free-text inputs."""
        return self._int_limit("word_limit", DEFAULT_WORD_LIMIT)

    @property
    def statement_word_limit(self) -> int:
        """Word limit for generated statements."""
        return self._int_limit("statement_word_limit", DEFAULT_STATEMENT_WORD_LIMIT)

    @property
    def enforce_statement_word_limit(self) -> bool:
        """Truncate LLM statements to the word limit too (default off)."""
        return bool(self._get_limits().get("enforce_statement_word_limit", False))

    @enforce_statement_word_limit.setter
    def enforce_statement_word_limit(self, value: bool) -> None:
        limits = self._get_limits()
        limits["enforce_statement_word_limit"] = bool(value)
        self.set("limits", limits)

    # --- Current user ---

    @property
    def current_user(self) -> dict[str, str] | None:
        """The signed-in user as {email, name}, if configured."""
        raw = self._data.get("current_user")
        if not isinstance(raw, dict) or not raw.get("email"):
            return None
        email = str(raw["email"])
        return {"email": email, "name": str(raw.get("name") or email)}

    @current_user.setter
    def current_user(self, value: dict[str, str] | None) -> None:
        if value is None:
            self._data.pop("current_user", None)
            self._save()
            return
        self.set("current_user", {"email": value["email"], "name": value["name"]})


# Global settings instance
settings = Settings()
