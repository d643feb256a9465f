"""Read side of the engagement store consumed by the leaderboard engine.

Like and comment counts are derived live from the ``likes`` and
``comments`` tables on every call; nothing here caches or persists a
computed value.  Snapshot consistency across posts is whatever a single
SELECT gives under the database's isolation level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.models.comment_record import CommentRecord
from backend.app.models.leaderboard import LeaderboardUser
from backend.app.models.like_record import LikeRecord
from backend.app.models.post_record import PostRecord
from backend.app.models.user_record import UserRecord

logger = logging.getLogger(__name__)


class EngagementStoreError(Exception):
    """Raised when posts or engagement counts cannot be read."""


@dataclass(frozen=True)
class PostEngagement:
    """One non-deleted post with its live engagement counts."""

    post_id: int
    author: LeaderboardUser
    post_type: str
    created_at: datetime
    like_count: int
    comment_count: int
    share_count: int = 0
    caption: str | None = None
    text_content: str | None = None

    @property
    def author_id(self) -> int:
        return self.author.id


def like_count_column():
    """Correlated subquery counting likes on ``PostRecord.id``."""
    return (
        select(func.count(LikeRecord.id))
        .where(LikeRecord.post_id == PostRecord.id)
        .correlate(PostRecord)
        .scalar_subquery()
    )


def comment_count_column():
    """Correlated subquery counting non-deleted comments (replies included)."""
    return (
        select(func.count(CommentRecord.id))
        .where(
            CommentRecord.post_id == PostRecord.id,
            CommentRecord.is_deleted.is_(False),
        )
        .correlate(PostRecord)
        .scalar_subquery()
    )


def _author_snapshot(user: UserRecord) -> LeaderboardUser:
    return LeaderboardUser(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        profile_image_url=user.profile_image_url,
        is_verified=user.is_verified,
        follower_count=user.follower_count,
    )


def list_trend_post_engagement(db: Session, trend_id: int) -> list[PostEngagement]:
    """Return every non-deleted post under *trend_id* with live counts.

    Posts come back oldest first (then by id) so downstream grouping sees a
    stable order.

    Raises:
        EngagementStoreError: If the query fails.  No partial list is ever
            returned, since a missing post would silently corrupt one
            author's total.
    """
    likes = like_count_column().label("like_count")
    comments = comment_count_column().label("comment_count")
    try:
        rows = (
            db.query(PostRecord, UserRecord, likes, comments)
            .join(UserRecord, PostRecord.user_id == UserRecord.id)
            .filter(
                PostRecord.trend_id == trend_id,
                PostRecord.is_deleted.is_(False),
            )
            .order_by(PostRecord.created_at.asc(), PostRecord.id.asc())
            .all()
        )
    except SQLAlchemyError as exc:
        logger.warning(
            "db_read_failed: operation=list_trend_post_engagement trend_id=%d",
            trend_id,
        )
        raise EngagementStoreError(
            f"Could not read engagement for trend {trend_id}"
        ) from exc

    return [
        PostEngagement(
            post_id=post.id,
            author=_author_snapshot(user),
            post_type=post.post_type,
            created_at=post.created_at,
            like_count=like_count or 0,
            comment_count=comment_count or 0,
            caption=post.caption,
            text_content=post.text_content,
        )
        for post, user, like_count, comment_count in rows
    ]
