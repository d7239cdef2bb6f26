"""Pydantic models for comments and orchestrator results."""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Parsed analysis JSON, returned to callers as produced by the model
AnalysisResult = dict[str, Any]


class LLMProvider(str, Enum):
    """Supported LLM providers.

    Values are the identifiers stored in persisted client configurations.
    """

    OPENAI = "OpenAI"
    GROK = "Grok"  # X.AI
    DEEPSEEK = "Deep"
    GEMINI = "Gemini"


def to_iso_timestamp(value: Any) -> str:
    """Normalize a timestamp to an ISO-8601 string.

    Strings are returned unchanged. Datetimes are rendered in UTC with
    millisecond precision and a ``Z`` suffix; naive values are taken as UTC.
    Numbers are epoch milliseconds.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime.combine(value, time.min)
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso_timestamp(value: Any) -> datetime | None:
    """Parse a string or datetime into an aware UTC datetime, or None."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Comment(BaseModel):
    """A single comment from a discussion thread."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    text: str = Field(
        default="",
        validation_alias=AliasChoices("text", "comment"),
    )
    replies_count: int = Field(default=0, ge=0, alias="repliesCount")
    likes_count: int = Field(default=0, ge=0, alias="likesCount")
    created_at: str = Field(
        description="ISO-8601 timestamp; datetimes are normalized on input",
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Opaque identifiers (ObjectIds, ints) are kept as strings."""
        return str(v)

    @field_validator("text", mode="before")
    @classmethod
    def ensure_text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("replies_count", "likes_count", mode="before")
    @classmethod
    def default_counts(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("created_at", mode="before")
    @classmethod
    def normalize_created_at(cls, v: Any) -> str:
        try:
            return to_iso_timestamp(v)
        except (TypeError, OverflowError, OSError) as e:
            raise ValueError(str(e)) from e

    @property
    def created_at_datetime(self) -> datetime | None:
        """Parsed creation time, or None if the stored string is not ISO-8601."""
        return parse_iso_timestamp(self.created_at)


class ModerationVerdict(BaseModel):
    """Outcome of moderating a single text."""

    model_config = ConfigDict(populate_by_name=True)

    is_rejected: bool | None = Field(alias="isRejected")
    reason: str

    @property
    def succeeded(self) -> bool:
        return self.is_rejected is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase response shape."""
        return {"isRejected": self.is_rejected, "reason": self.reason}


class AnalysisOutcome(BaseModel):
    """Outcome of analyzing a comment thread."""

    analysis: AnalysisResult | None = None
    reason: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.analysis is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the response shape."""
        return {"analysis": self.analysis, "reason": self.reason}
