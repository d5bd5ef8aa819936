from __future__ import annotations

import copy
from collections.abc import Iterator
from pathlib import Path

import pytest

from achievers.config.paths import get_paths, reset_paths
from achievers.config.settings import settings

CREDENTIAL_ENV_VARS = (
    "AICORE_AUTH_URL",
    "AICORE_CLIENT_ID",
    "AICORE_CLIENT_SECRET",
    "AICORE_API_URL",
    "AICORE_RESOURCE_GROUP",
)


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Prevent tests from persisting settings to disk."""
    original_data = copy.deepcopy(settings._data)

    def _noop_save() -> None:
        return None

    monkeypatch.setattr(settings, "_save", _noop_save)
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    try:
        yield
    finally:
        settings._data = original_data


@pytest.fixture
def workspace(tmp_path: Path) -> Iterator[Path]:
    """Point workspace paths at a temporary directory."""
    reset_paths()
    get_paths(tmp_path)
    try:
        yield tmp_path
    finally:
        reset_paths()
