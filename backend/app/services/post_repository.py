"""Repository for posts, likes and comments (the write side of engagement).

All methods operate on a caller-supplied SQLAlchemy ``Session`` so that
transaction boundaries remain under the caller's control.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from backend.app.core.logging import (
    EVENT_COMMENT_CREATED,
    EVENT_COMMENT_DELETED,
    EVENT_COMMENT_UPDATED,
    EVENT_LIKE_ADDED,
    EVENT_LIKE_REMOVED,
    EVENT_POST_CREATED,
    EVENT_POST_DELETED,
    log_event,
)
from backend.app.models.comment_record import CommentRecord
from backend.app.models.engagement import CommentOut, PostOut, PostPage, PostType
from backend.app.models.like_record import LikeRecord
from backend.app.models.post_record import PostRecord
from backend.app.services.engagement_store import (
    comment_count_column,
    like_count_column,
)
from backend.app.services.store_utils import (
    PermissionDeniedError,
    handle_operational_error,
    to_utc_naive,
)
from backend.app.services.trend_repository import TrendNotFoundError, get_trend, is_live

logger = logging.getLogger(__name__)

POST_FEED_MAX_LIMIT = 50


class PostNotFoundError(Exception):
    """Raised when a post is missing or soft-deleted."""


class CommentNotFoundError(Exception):
    """Raised when a comment is missing or soft-deleted."""


class TrendNotJoinableError(Exception):
    """Raised when posting into a trend that is not live."""


class DuplicateLikeError(Exception):
    """Raised when a user likes the same post twice."""


class InvalidReplyError(Exception):
    """Raised when a reply targets a comment on another post or a reply."""


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


def get_post(db: Session, post_id: int) -> PostRecord:
    """Fetch a non-deleted post by primary key.

    Raises:
        PostNotFoundError: If the post does not exist or is soft-deleted.
    """
    post = db.get(PostRecord, post_id)
    if post is None or post.is_deleted:
        raise PostNotFoundError(f"Post not found: id={post_id}")
    return post


def get_post_out(db: Session, post_id: int) -> PostOut:
    """Return a non-deleted post with its live like and comment counts."""
    row = (
        db.query(
            PostRecord,
            like_count_column().label("like_count"),
            comment_count_column().label("comment_count"),
        )
        .filter(PostRecord.id == post_id, PostRecord.is_deleted.is_(False))
        .first()
    )
    if row is None:
        raise PostNotFoundError(f"Post not found: id={post_id}")
    return _to_post_out(*row)


def _to_post_out(post: PostRecord, like_count: int | None, comment_count: int | None) -> PostOut:
    return PostOut(
        id=post.id,
        user_id=post.user_id,
        trend_id=post.trend_id,
        post_type=PostType(post.post_type),
        caption=post.caption,
        text_content=post.text_content,
        image_url=post.image_url,
        video_url=post.video_url,
        created_at=post.created_at,
        like_count=like_count or 0,
        comment_count=comment_count or 0,
    )


def list_posts(
    db: Session,
    *,
    trend_id: int | None = None,
    page: int = 1,
    limit: int = 20,
) -> PostPage:
    """Page through non-deleted posts, newest first, with live counts.

    *limit* is clamped to ``POST_FEED_MAX_LIMIT``.  A page past the end is
    empty rather than an error.

    Raises:
        TrendNotFoundError: If *trend_id* is given and does not exist.
    """
    limit = max(1, min(limit, POST_FEED_MAX_LIMIT))
    page = max(1, page)
    filters = [PostRecord.is_deleted.is_(False)]
    if trend_id is not None:
        get_trend(db, trend_id)
        filters.append(PostRecord.trend_id == trend_id)

    total = db.query(func.count(PostRecord.id)).filter(*filters).scalar() or 0
    rows = (
        db.query(
            PostRecord,
            like_count_column().label("like_count"),
            comment_count_column().label("comment_count"),
        )
        .filter(*filters)
        .order_by(PostRecord.created_at.desc(), PostRecord.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return PostPage(
        items=[_to_post_out(*row) for row in rows],
        page=page,
        limit=limit,
        total=total,
        total_pages=(total + limit - 1) // limit,
    )


def create_post(
    db: Session,
    *,
    user_id: int,
    trend_id: int,
    post_type: str,
    created_at: datetime,
    caption: str | None = None,
    text_content: str | None = None,
    image_url: str | None = None,
    video_url: str | None = None,
) -> PostRecord:
    """Enter a post into a live trend.

    Raises:
        TrendNotJoinableError: If the trend is missing or not live.
    """
    try:
        trend = get_trend(db, trend_id)
    except TrendNotFoundError as exc:
        raise TrendNotJoinableError("Trend not found or no longer active") from exc
    if not is_live(trend, created_at):
        raise TrendNotJoinableError("Trend not found or no longer active")

    post = PostRecord(
        user_id=user_id,
        trend_id=trend_id,
        post_type=post_type,
        caption=caption,
        text_content=text_content,
        image_url=image_url,
        video_url=video_url,
        is_deleted=False,
        created_at=to_utc_naive(created_at),
    )
    db.add(post)
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "create_post")
    log_event(
        logger, "info", EVENT_POST_CREATED,
        post_id=post.id, trend_id=trend_id, user_id=user_id, post_type=post_type,
    )
    return post


def soft_delete_post(db: Session, post_id: int, *, user_id: int) -> None:
    """Mark a post deleted so it stops counting toward any leaderboard.

    Raises:
        PostNotFoundError: If the post is missing or already deleted.
        PermissionDeniedError: If *user_id* is not the author.
    """
    post = get_post(db, post_id)
    if post.user_id != user_id:
        raise PermissionDeniedError("You can only delete your own posts")
    post.is_deleted = True
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "soft_delete_post")
    log_event(logger, "info", EVENT_POST_DELETED, post_id=post_id)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


def count_likes(db: Session, post_id: int) -> int:
    return (
        db.query(func.count(LikeRecord.id))
        .filter(LikeRecord.post_id == post_id)
        .scalar()
    ) or 0


def like_post(
    db: Session, post_id: int, *, user_id: int, liked_at: datetime,
) -> int:
    """Record a like and return the post's new like count.

    Raises:
        PostNotFoundError: If the post is missing or soft-deleted.
        DuplicateLikeError: If *user_id* already liked the post.
    """
    get_post(db, post_id)
    existing = (
        db.query(LikeRecord.id)
        .filter(LikeRecord.user_id == user_id, LikeRecord.post_id == post_id)
        .first()
    )
    if existing is not None:
        raise DuplicateLikeError("Post already liked")

    db.add(LikeRecord(
        user_id=user_id, post_id=post_id, created_at=to_utc_naive(liked_at),
    ))
    try:
        db.flush()
    except IntegrityError as exc:
        if "unique" not in str(exc).lower():
            raise
        # Lost a race against a concurrent like from the same user.
        raise DuplicateLikeError("Post already liked") from exc
    except OperationalError as exc:
        handle_operational_error(exc, "like_post")
    like_count = count_likes(db, post_id)
    log_event(
        logger, "info", EVENT_LIKE_ADDED,
        post_id=post_id, user_id=user_id, like_count=like_count,
    )
    return like_count


def unlike_post(db: Session, post_id: int, *, user_id: int) -> int:
    """Remove a like if present and return the post's like count.

    Unliking a post that was never liked is a no-op.

    Raises:
        PostNotFoundError: If the post is missing or soft-deleted.
    """
    get_post(db, post_id)
    deleted = (
        db.query(LikeRecord)
        .filter(LikeRecord.user_id == user_id, LikeRecord.post_id == post_id)
        .delete(synchronize_session=False)
    )
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "unlike_post")
    like_count = count_likes(db, post_id)
    log_event(
        logger, "info", EVENT_LIKE_REMOVED,
        post_id=post_id, user_id=user_id, removed=deleted, like_count=like_count,
    )
    return like_count


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def to_comment_out(comment: CommentRecord, replies: list[CommentOut] | None = None) -> CommentOut:
    return CommentOut(
        id=comment.id,
        user_id=comment.user_id,
        post_id=comment.post_id,
        parent_comment_id=comment.parent_comment_id,
        content=comment.content,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        replies=replies or [],
    )


def get_comment(db: Session, comment_id: int) -> CommentRecord:
    """Fetch a non-deleted comment by primary key.

    Raises:
        CommentNotFoundError: If the comment is missing or soft-deleted.
    """
    comment = db.get(CommentRecord, comment_id)
    if comment is None or comment.is_deleted:
        raise CommentNotFoundError(f"Comment not found: id={comment_id}")
    return comment


def list_comments(db: Session, post_id: int) -> list[CommentOut]:
    """Top-level comments newest first, each with its replies oldest first."""
    get_post(db, post_id)
    rows = (
        db.query(CommentRecord)
        .filter(
            CommentRecord.post_id == post_id,
            CommentRecord.is_deleted.is_(False),
        )
        .order_by(CommentRecord.created_at.asc(), CommentRecord.id.asc())
        .all()
    )
    replies: dict[int, list[CommentOut]] = {}
    for row in rows:
        if row.parent_comment_id is not None:
            replies.setdefault(row.parent_comment_id, []).append(to_comment_out(row))
    top_level = [
        to_comment_out(row, replies.get(row.id))
        for row in rows
        if row.parent_comment_id is None
    ]
    top_level.reverse()
    return top_level


def create_comment(
    db: Session,
    post_id: int,
    *,
    user_id: int,
    content: str,
    created_at: datetime,
    parent_comment_id: int | None = None,
) -> CommentRecord:
    """Add a comment, or a reply when *parent_comment_id* is given.

    Replies nest one level deep: the parent must be a live top-level
    comment on the same post.

    Raises:
        PostNotFoundError: If the post is missing or soft-deleted.
        CommentNotFoundError: If the parent comment is missing or deleted.
        InvalidReplyError: If the parent belongs elsewhere or is a reply.
    """
    get_post(db, post_id)
    if parent_comment_id is not None:
        parent = get_comment(db, parent_comment_id)
        if parent.post_id != post_id:
            raise InvalidReplyError("Parent comment belongs to a different post")
        if parent.parent_comment_id is not None:
            raise InvalidReplyError("Replies can only target top-level comments")

    comment = CommentRecord(
        user_id=user_id,
        post_id=post_id,
        parent_comment_id=parent_comment_id,
        content=content,
        is_deleted=False,
        created_at=to_utc_naive(created_at),
    )
    db.add(comment)
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "create_comment")
    log_event(
        logger, "info", EVENT_COMMENT_CREATED,
        comment_id=comment.id, post_id=post_id, user_id=user_id,
        is_reply=parent_comment_id is not None, content_len=len(content),
    )
    return comment


def update_comment(
    db: Session,
    comment_id: int,
    *,
    user_id: int,
    content: str,
    updated_at: datetime,
) -> CommentRecord:
    """Replace a comment's text.  Only its author may edit it.

    Raises:
        CommentNotFoundError: If the comment is missing or soft-deleted.
        PermissionDeniedError: If *user_id* is not the comment's author.
    """
    comment = get_comment(db, comment_id)
    if comment.user_id != user_id:
        raise PermissionDeniedError("You can only edit your own comments")
    comment.content = content
    comment.updated_at = to_utc_naive(updated_at)
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "update_comment")
    log_event(
        logger, "info", EVENT_COMMENT_UPDATED,
        comment_id=comment_id, post_id=comment.post_id, content_len=len(content),
    )
    return comment


def soft_delete_comment(db: Session, comment_id: int, *, user_id: int) -> int:
    """Soft-delete a comment together with its replies.

    Returns the number of comments marked deleted.

    Raises:
        CommentNotFoundError: If the comment is missing or already deleted.
        PermissionDeniedError: If *user_id* is not the comment's author.
    """
    comment = get_comment(db, comment_id)
    if comment.user_id != user_id:
        raise PermissionDeniedError("You can only delete your own comments")
    comment.is_deleted = True
    result = db.execute(
        update(CommentRecord)
        .where(
            CommentRecord.parent_comment_id == comment_id,
            CommentRecord.is_deleted.is_(False),
        )
        .values(is_deleted=True)
    )
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "soft_delete_comment")
    deleted = 1 + (result.rowcount or 0)
    log_event(
        logger, "info", EVENT_COMMENT_DELETED,
        comment_id=comment_id, post_id=comment.post_id, deleted=deleted,
    )
    return deleted
