"""Shared fixtures for key service tests."""

from __future__ import annotations

import pytest

from openrouter_keys.config import get_settings


@pytest.fixture(autouse=True)
def _clear_openrouter_env(monkeypatch):
    """Keep developer credentials and cached settings out of the tests."""
    for name in ("OPENROUTER_API_KEY", "OPENROUTER_ENDPOINT", "OPENROUTER_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
