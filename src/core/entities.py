"""
Domain entities for the affiliate console.

- ClickEvent: one recorded affiliate-link click (immutable once recorded)
- BlogPost: content entity persisted remotely with a local fallback copy

Derived analytics values (daily metrics, source breakdown, product ranking)
are never persisted and live with the analytics component models.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "BlogPost",
    "ClickEvent",
    "UNKNOWN_SOURCE",
]

UNKNOWN_SOURCE = "unknown"


def _ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and normalize aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# --- Click Events ---


class ClickEvent(BaseModel):
    """
    One observed affiliate-link click.

    Invariants:
    - occurred_at is always timezone-aware UTC (source of all bucketing)
    - events are never updated; only bulk deletion by time range is supported
    """

    model_config = ConfigDict(frozen=True)

    occurred_at: datetime
    source: str = UNKNOWN_SOURCE
    product_id: str | None = None
    product_name: str | None = None
    id: str | None = None

    @field_validator("occurred_at")
    @classmethod
    def _normalize_occurred_at(cls, value: datetime) -> datetime:
        return _ensure_utc(value)

    @field_validator("source", mode="before")
    @classmethod
    def _default_source(cls, value: Any) -> Any:
        return UNKNOWN_SOURCE if value is None else value

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_product_id(cls, value: Any) -> Any:
        # Remote rows carry numeric or string ids
        if value is None or value == "":
            return None
        return str(value)


# --- Blog Posts ---


class BlogPost(BaseModel):
    """
    Blog post as stored in either persistence tier.

    The remote backend assigns ids on insert; the local fallback tier
    generates its own when the remote write fails.
    """

    id: str | None = None
    title: str
    slug: str
    excerpt: str = ""
    content: str = ""
    category: str = "General"
    category_id: str | None = None
    image_url: str = ""
    published: bool = False
    featured: bool = False
    author_id: str | None = None
    read_time: str | None = None
    tags: list[str] = Field(default_factory=list)
    scheduled_at: datetime | None = None
    published_at: datetime | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    seo_keywords: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("scheduled_at", "published_at", "created_at", "updated_at")
    @classmethod
    def _normalize_timestamps(cls, value: datetime | None) -> datetime | None:
        return _ensure_utc(value) if value is not None else None

    def to_record(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible record for either store tier."""
        return self.model_dump(mode="json")
