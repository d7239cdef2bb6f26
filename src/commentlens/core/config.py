"""Configuration management using Pydantic Settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Client configuration lookup
    moderation_config_domain: str = "moderation"
    analysis_config_domain: str = "moderation"
    client_configs_path: Path | None = None

    # Comment analysis
    analysis_max_comments: int = Field(default=100, ge=1)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: str) -> str:
        """Fall back to JSON output for unknown formats."""
        value = str(v).strip().lower()
        return value if value in ("json", "console") else "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
