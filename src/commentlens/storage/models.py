"""Pydantic models for stored client configuration."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClientConfiguration(BaseModel):
    """Per-client moderation settings, read from the configuration service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    enabled: bool
    provider: str
    api_key: str | None = Field(default=None, alias="apiKey")
    # Mapping or JSON-object string; anything else is ignored when merging
    config_json: Any = Field(default=None, alias="configJson")
    prompt: str | None = None

    @field_validator("provider", mode="before")
    @classmethod
    def coerce_provider(cls, v: Any) -> str:
        """Accept enum members as well as raw identifiers."""
        return str(getattr(v, "value", v))

    def with_config_json(self, config_json: dict[str, Any]) -> "ClientConfiguration":
        """Return a copy using different tuning parameters."""
        return self.model_copy(update={"config_json": config_json})
