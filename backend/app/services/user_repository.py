"""Repository for user profiles."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from backend.app.models.engagement import UserOut
from backend.app.models.user_record import UserRecord
from backend.app.services.store_utils import handle_operational_error, to_utc_naive

logger = logging.getLogger(__name__)


class UserNotFoundError(Exception):
    """Raised when a user cannot be found by id."""


class UsernameTakenError(Exception):
    """Raised when a username is already registered."""


def to_user_out(user: UserRecord) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        display_name=user.display_name,
        profile_image_url=user.profile_image_url,
        is_verified=user.is_verified,
        follower_count=user.follower_count,
        created_at=user.created_at,
    )


def create_user(
    db: Session,
    *,
    username: str,
    created_at: datetime,
    display_name: str | None = None,
    profile_image_url: str | None = None,
    is_verified: bool = False,
    follower_count: int = 0,
) -> UserRecord:
    """Register a profile.

    Raises:
        UsernameTakenError: If *username* exists (case-insensitive).
    """
    taken = (
        db.query(UserRecord.id)
        .filter(func.lower(UserRecord.username) == username.lower())
        .first()
    )
    if taken is not None:
        raise UsernameTakenError(f"Username already taken: {username}")

    user = UserRecord(
        username=username,
        display_name=display_name,
        profile_image_url=profile_image_url,
        is_verified=is_verified,
        follower_count=follower_count,
        created_at=to_utc_naive(created_at),
    )
    db.add(user)
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "create_user")
    logger.info("user_created: id=%d", user.id)
    return user


def get_user(db: Session, user_id: int) -> UserRecord:
    """Fetch a user by primary key.

    Raises:
        UserNotFoundError: If no user with *user_id* exists.
    """
    user = db.get(UserRecord, user_id)
    if user is None:
        raise UserNotFoundError(f"User not found: id={user_id}")
    return user


def get_user_by_username(db: Session, username: str) -> UserRecord:
    """Fetch a user by username, ignoring case like registration does.

    Raises:
        UserNotFoundError: If no user holds *username*.
    """
    user = (
        db.query(UserRecord)
        .filter(func.lower(UserRecord.username) == username.lower())
        .first()
    )
    if user is None:
        raise UserNotFoundError(f"User not found: username={username}")
    return user
