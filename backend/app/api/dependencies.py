"""Shared FastAPI dependencies."""

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.services.user_repository import UserNotFoundError, get_user

# Identifiers are 32-bit signed integers in the store.
MAX_ID = 2**31 - 1


def get_acting_user_id(
    x_user_id: int = Header(..., ge=1, le=MAX_ID),
) -> int:
    """Return the acting user's id, asserted upstream via ``X-User-Id``."""
    return x_user_id


def get_acting_user(
    user_id: int = Depends(get_acting_user_id),
    db: Session = Depends(get_db),
) -> int:
    """Like :func:`get_acting_user_id`, but 404 when the user does not exist."""
    try:
        get_user(db, user_id)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail=f"User not found: {user_id}")
    return user_id
