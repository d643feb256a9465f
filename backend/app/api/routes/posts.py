"""Post, like and comment endpoints feeding the leaderboard."""

import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from sqlalchemy.orm import Session

from backend.app.api.dependencies import MAX_ID, get_acting_user
from backend.app.core.errors import normalize_db_error
from backend.app.db.session import get_db
from backend.app.models.engagement import (
    CommentCreate,
    CommentOut,
    CommentUpdate,
    LikeCountResponse,
    PostCreate,
    PostOut,
    PostPage,
)
from backend.app.services.post_repository import (
    CommentNotFoundError,
    DuplicateLikeError,
    InvalidReplyError,
    PostNotFoundError,
    TrendNotJoinableError,
    create_comment,
    create_post,
    get_post_out,
    like_post,
    list_comments,
    list_posts,
    soft_delete_comment,
    soft_delete_post,
    to_comment_out,
    unlike_post,
    update_comment,
)
from backend.app.services.store_utils import PermissionDeniedError
from backend.app.services.trend_repository import TrendNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _db_failure(db: Session, exc: Exception, operation: str) -> HTTPException:
    db.rollback()
    error = normalize_db_error(
        exc, operation=operation, correlation_id=str(uuid.uuid4()),
    )
    return error.to_http_exception()


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


@router.get("/api/v1/posts", response_model=PostPage)
def read_post_feed(
    trend_id: int | None = Query(default=None, ge=1, le=MAX_ID),
    page: int = Query(default=1, ge=1, le=MAX_ID),
    limit: int = Query(default=20, ge=1),
    db: Session = Depends(get_db),
) -> PostPage:
    """Newest posts first, optionally within one trend. *limit* caps at 50."""
    try:
        return list_posts(db, trend_id=trend_id, page=page, limit=limit)
    except TrendNotFoundError:
        raise HTTPException(status_code=404, detail="trend not found")


@router.post("/api/v1/posts", response_model=PostOut, status_code=201)
def create_new_post(
    body: PostCreate,
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> PostOut:
    """Enter a post into a live trend."""
    try:
        post = create_post(
            db,
            user_id=user_id,
            trend_id=body.trend_id,
            post_type=body.post_type.value,
            created_at=datetime.now(UTC),
            caption=body.caption,
            text_content=body.text_content,
            image_url=body.image_url,
            video_url=body.video_url,
        )
        db.commit()
    except TrendNotJoinableError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise _db_failure(db, exc, "create_post")
    return get_post_out(db, post.id)


@router.get("/api/v1/posts/{post_id}", response_model=PostOut)
def get_one_post(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
) -> PostOut:
    try:
        return get_post_out(db, post_id)
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="post not found")


@router.delete("/api/v1/posts/{post_id}", status_code=204)
def delete_post(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> Response:
    """Soft-delete a post; it stops counting toward its trend's leaderboard."""
    try:
        soft_delete_post(db, post_id, user_id=user_id)
        db.commit()
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="post not found")
    except PermissionDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except Exception as exc:
        raise _db_failure(db, exc, "soft_delete_post")
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


@router.post("/api/v1/posts/{post_id}/like", response_model=LikeCountResponse)
def like(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> LikeCountResponse:
    try:
        like_count = like_post(db, post_id, user_id=user_id, liked_at=datetime.now(UTC))
        db.commit()
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="post not found")
    except DuplicateLikeError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc))
    except Exception as exc:
        raise _db_failure(db, exc, "like_post")
    return LikeCountResponse(post_id=post_id, like_count=like_count, liked=True)


@router.delete("/api/v1/posts/{post_id}/like", response_model=LikeCountResponse)
def unlike(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> LikeCountResponse:
    """Remove the acting user's like. Idempotent."""
    try:
        like_count = unlike_post(db, post_id, user_id=user_id)
        db.commit()
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="post not found")
    except Exception as exc:
        raise _db_failure(db, exc, "unlike_post")
    return LikeCountResponse(post_id=post_id, like_count=like_count, liked=False)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@router.get("/api/v1/posts/{post_id}/comments", response_model=list[CommentOut])
def read_comments(
    post_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
) -> list[CommentOut]:
    try:
        return list_comments(db, post_id)
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="post not found")


@router.post(
    "/api/v1/posts/{post_id}/comments", response_model=CommentOut, status_code=201,
)
def add_comment(
    body: CommentCreate,
    post_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> CommentOut:
    try:
        comment = create_comment(
            db,
            post_id,
            user_id=user_id,
            content=body.content,
            created_at=datetime.now(UTC),
            parent_comment_id=body.parent_comment_id,
        )
        db.commit()
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="post not found")
    except CommentNotFoundError:
        raise HTTPException(status_code=404, detail="parent comment not found")
    except InvalidReplyError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except Exception as exc:
        raise _db_failure(db, exc, "create_comment")
    return to_comment_out(comment)


@router.put("/api/v1/comments/{comment_id}", response_model=CommentOut)
def edit_comment(
    body: CommentUpdate,
    comment_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> CommentOut:
    """Replace the text of the acting user's own comment."""
    try:
        comment = update_comment(
            db,
            comment_id,
            user_id=user_id,
            content=body.content,
            updated_at=datetime.now(UTC),
        )
        db.commit()
    except CommentNotFoundError:
        raise HTTPException(status_code=404, detail="comment not found")
    except PermissionDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except Exception as exc:
        raise _db_failure(db, exc, "update_comment")
    return to_comment_out(comment)


@router.delete("/api/v1/comments/{comment_id}", status_code=204)
def delete_comment(
    comment_id: int = Path(..., ge=1, le=MAX_ID),
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> Response:
    """Soft-delete a comment and its replies."""
    try:
        soft_delete_comment(db, comment_id, user_id=user_id)
        db.commit()
    except CommentNotFoundError:
        raise HTTPException(status_code=404, detail="comment not found")
    except PermissionDeniedError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    except Exception as exc:
        raise _db_failure(db, exc, "soft_delete_comment")
    return Response(status_code=204)
