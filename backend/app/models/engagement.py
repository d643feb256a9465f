"""Pydantic models for users, posts, likes and comments."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator, model_validator


class PostType(StrEnum):
    image = "image"
    video = "video"
    text = "text"


def _strip(v: str | None) -> str | None:
    if isinstance(v, str):
        return v.strip() or None
    return v


class UserCreate(BaseModel):
    """Incoming request to register a profile."""

    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_]+$")
    display_name: str | None = Field(default=None, max_length=100)
    profile_image_url: str | None = Field(default=None, max_length=2_048)
    is_verified: bool = False
    follower_count: int = Field(default=0, ge=0)

    @field_validator("display_name", "profile_image_url", mode="before")
    @classmethod
    def strip_optional(cls, v: str | None) -> str | None:
        return _strip(v)


class UserOut(BaseModel):
    id: int
    username: str
    display_name: str | None = None
    profile_image_url: str | None = None
    is_verified: bool
    follower_count: int
    created_at: datetime


class PostCreate(BaseModel):
    """Incoming request to enter a post into a trend.

    Exactly the content payload matching ``post_type`` must be supplied.
    """

    trend_id: int = Field(..., ge=1)
    post_type: PostType = PostType.image
    caption: str | None = Field(default=None, max_length=2_200)
    text_content: str | None = Field(default=None, max_length=5_000)
    image_url: str | None = Field(default=None, max_length=2_048)
    video_url: str | None = Field(default=None, max_length=2_048)

    @field_validator("caption", "text_content", "image_url", "video_url", mode="before")
    @classmethod
    def strip_text(cls, v: str | None) -> str | None:
        return _strip(v)

    @model_validator(mode="after")
    def _check_payload_matches_type(self) -> "PostCreate":
        payloads = {
            PostType.image: self.image_url,
            PostType.video: self.video_url,
            PostType.text: self.text_content,
        }
        if payloads[self.post_type] is None:
            field = {
                PostType.image: "image_url",
                PostType.video: "video_url",
                PostType.text: "text_content",
            }[self.post_type]
            raise ValueError(f"{field} is required for {self.post_type} posts")
        extra = [
            t.value for t, value in payloads.items()
            if t != self.post_type and value is not None
        ]
        if extra:
            raise ValueError(
                f"{self.post_type} posts cannot carry {', '.join(extra)} content"
            )
        return self


class PostOut(BaseModel):
    id: int
    user_id: int
    trend_id: int
    post_type: PostType
    caption: str | None = None
    text_content: str | None = None
    image_url: str | None = None
    video_url: str | None = None
    created_at: datetime
    like_count: int = 0
    comment_count: int = 0


class PostPage(BaseModel):
    """One page of the post feed, newest first."""

    items: list[PostOut]
    page: int
    limit: int
    total: int
    total_pages: int


class LikeCountResponse(BaseModel):
    post_id: int
    like_count: int
    liked: bool


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2_000)
    parent_comment_id: int | None = Field(default=None, ge=1)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip()
        return v


class CommentUpdate(BaseModel):
    """Replacement text for an existing comment."""

    content: str = Field(..., min_length=1, max_length=2_000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip()
        return v


class CommentOut(BaseModel):
    id: int
    user_id: int
    post_id: int
    parent_comment_id: int | None = None
    content: str
    created_at: datetime
    updated_at: datetime | None = None
    replies: list[CommentOut] = Field(default_factory=list)
