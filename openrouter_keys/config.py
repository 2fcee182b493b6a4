"""Key service configuration.

Configuration sources (in priority order):
1. Explicit arguments to KeyServiceClient
2. Environment variables (OPENROUTER_ prefix)
3. Defaults
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from openrouter_keys._http import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


class Settings(BaseSettings):
    """Key service client settings."""

    model_config = SettingsConfigDict(
        env_prefix="OPENROUTER_",
        case_sensitive=False,
    )

    # Provisioning credential; OPENROUTER_API_KEY
    api_key: str = ""
    endpoint: str = DEFAULT_BASE_URL
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
