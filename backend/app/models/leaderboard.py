"""Pydantic models for leaderboard responses."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TrendPhase(StrEnum):
    """Lifecycle phase derived from a trend's dates and active flag."""

    not_started = "not_started"
    active = "active"
    ended = "ended"


class LeaderboardMode(StrEnum):
    """How the caller intends to consume the leaderboard."""

    live = "live"
    final = "final"


class RankingMode(StrEnum):
    """Rank assignment policy for tied scores.

    ``sequential`` gives every entry a distinct rank (1, 2, 3).
    ``competition`` lets tied scores share a rank (1, 1, 3).
    """

    sequential = "sequential"
    competition = "competition"


class LeaderboardUser(BaseModel):
    """Author profile snapshot taken from the author's first post."""

    id: int
    username: str
    display_name: str | None = None
    profile_image_url: str | None = None
    is_verified: bool = False
    follower_count: int = 0


class LeaderboardPost(BaseModel):
    """A post contributing to an author's total."""

    id: int
    caption: str | None = None
    text_content: str | None = None
    post_type: str
    created_at: datetime
    like_count: int
    comment_count: int


class LeaderboardEntry(BaseModel):
    user_id: int
    user: LeaderboardUser
    posts: list[LeaderboardPost] = Field(default_factory=list)
    score: float
    rank: int = Field(..., ge=1)


class LeaderboardResponse(BaseModel):
    """API response envelope for a trend leaderboard."""

    trend_id: int
    phase: TrendPhase
    mode: LeaderboardMode
    ranking: RankingMode
    is_final: bool = False
    generated_at: datetime
    entries: list[LeaderboardEntry] = Field(default_factory=list)


class LeaderboardStats(BaseModel):
    """Aggregate numbers for the trend stats view."""

    trend_id: int
    participants: int
    total_posts: int
    total_likes: int
    total_comments: int
    top_score: float | None = None
