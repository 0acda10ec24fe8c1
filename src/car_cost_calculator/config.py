"""
Application configuration.

All settings read from environment variables (or a local .env file) with
defaults that work without any setup. Only the language-model features need
LLM_API_KEY; the cost engine reads no configuration at all.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the advisory services, snapshot store and CLI."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- LLM --
    LLM_API_KEY: str | None = Field(
        default=None,
        description="API key for the OpenAI-compatible chat endpoint. Unset disables AI features.",
    )
    LLM_BASE_URL: str = Field(
        default="https://api.z.ai/api/coding/paas/v4",
        description="Base URL of the OpenAI-compatible chat-completions endpoint.",
    )
    LLM_MODEL: str = Field(
        default="glm-4.6",
        description="Model name sent with every completion request.",
    )
    LLM_TIMEOUT_SECONDS: float = Field(
        default=60.0,
        description="Per-request timeout for advisory and prefill calls.",
    )

    # -- Snapshots --
    SNAPSHOT_PATH: Path = Field(
        default=Path.home() / ".car_cost_calculator" / "snapshots.json",
        description="JSON file holding named input snapshots.",
    )

    # -- Logging --
    LOG_LEVEL: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance; call get_settings.cache_clear() after env changes."""
    return Settings()
