"""User profile endpoints."""

import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from backend.app.api.dependencies import MAX_ID
from backend.app.core.errors import normalize_db_error
from backend.app.db.session import get_db
from backend.app.models.engagement import UserCreate, UserOut
from backend.app.services.user_repository import (
    UsernameTakenError,
    UserNotFoundError,
    create_user,
    get_user,
    get_user_by_username,
    to_user_out,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/users", response_model=UserOut, status_code=201)
def register_user(body: UserCreate, db: Session = Depends(get_db)) -> UserOut:
    try:
        user = create_user(
            db,
            username=body.username,
            display_name=body.display_name,
            profile_image_url=body.profile_image_url,
            is_verified=body.is_verified,
            follower_count=body.follower_count,
            created_at=datetime.now(UTC),
        )
        db.commit()
    except UsernameTakenError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except Exception as exc:
        db.rollback()
        error = normalize_db_error(
            exc, operation="create_user", correlation_id=str(uuid.uuid4()),
        )
        raise error.to_http_exception()
    return to_user_out(user)


@router.get("/api/v1/users/{user_id}", response_model=UserOut)
def get_one_user(
    user_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
) -> UserOut:
    try:
        return to_user_out(get_user(db, user_id))
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail=f"User not found: {user_id}")


@router.get("/api/v1/users/username/{username}", response_model=UserOut)
def get_user_by_name(
    username: str = Path(..., min_length=1, max_length=50),
    db: Session = Depends(get_db),
) -> UserOut:
    try:
        return to_user_out(get_user_by_username(db, username))
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail=f"User not found: {username}")
