"""Pydantic models for trend creation and listing."""

import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from backend.app.models.leaderboard import TrendPhase

HASHTAG_PATTERN = re.compile(r"^[a-z0-9_]+$")


class TrendCreate(BaseModel):
    """Incoming request to open a new trend."""

    name: str = Field(..., min_length=1, max_length=100)
    hashtag: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(default=None, max_length=2_000)
    duration_days: int | None = Field(default=None, ge=1, le=365)
    start_date: datetime | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("hashtag", mode="before")
    @classmethod
    def normalize_hashtag(cls, v: str | None) -> str | None:
        """Lowercase, trim, and drop a leading ``#``."""
        if isinstance(v, str):
            return v.strip().lstrip("#").lower()
        return v

    @field_validator("hashtag")
    @classmethod
    def check_hashtag_charset(cls, v: str) -> str:
        if not HASHTAG_PATTERN.match(v):
            raise ValueError("hashtag may only contain letters, digits and underscores")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def blank_description_is_none(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip() or None
        return v


class TrendOut(BaseModel):
    id: int
    name: str
    hashtag: str
    description: str | None = None
    start_date: datetime
    end_date: datetime
    is_active: bool
    created_by: int | None = None
    created_at: datetime
    phase: TrendPhase
    post_count: int = 0
