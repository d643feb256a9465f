"""Trend listing, lookup and creation."""

import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.orm import Session

from backend.app.api.dependencies import MAX_ID, get_acting_user
from backend.app.core.errors import normalize_db_error
from backend.app.core.settings import settings
from backend.app.db.session import get_db
from backend.app.models.trend import TrendCreate, TrendOut
from backend.app.services.trend_repository import (
    HashtagConflictError,
    TrendNotFoundError,
    count_trend_posts,
    create_trend,
    get_trend,
    list_trends,
    to_trend_out,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/v1/trends", response_model=list[TrendOut])
def list_all_trends(active: bool = False, db: Session = Depends(get_db)) -> list[TrendOut]:
    """Return trends, active first; ``?active=true`` keeps only running ones."""
    return list_trends(db, now=datetime.now(UTC), active_only=active)


@router.get("/api/v1/trends/{trend_id}", response_model=TrendOut)
def get_one_trend(
    trend_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
) -> TrendOut:
    try:
        trend = get_trend(db, trend_id)
    except TrendNotFoundError:
        raise HTTPException(status_code=404, detail="trend not found")
    return to_trend_out(
        trend, post_count=count_trend_posts(db, trend_id), now=datetime.now(UTC),
    )


@router.post("/api/v1/trends", response_model=TrendOut, status_code=201)
def create_new_trend(
    body: TrendCreate,
    user_id: int = Depends(get_acting_user),
    db: Session = Depends(get_db),
) -> TrendOut:
    """Open a trend; the hashtag must not belong to another active trend."""
    correlation_id = str(uuid.uuid4())
    now = datetime.now(UTC)
    try:
        trend = create_trend(
            db,
            name=body.name,
            hashtag=body.hashtag,
            description=body.description,
            created_by=user_id,
            now=now,
            start_date=body.start_date,
            duration_days=body.duration_days or settings.trend_default_duration_days,
        )
        db.commit()
    except HashtagConflictError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(exc))
    except Exception as exc:
        db.rollback()
        error = normalize_db_error(
            exc, operation="create_trend", correlation_id=correlation_id,
        )
        raise error.to_http_exception()
    return to_trend_out(trend, post_count=0, now=now)
