"""Repository for trend CRUD and lifecycle queries.

All methods operate on a caller-supplied SQLAlchemy ``Session`` so that
transaction boundaries remain under the caller's control.  Timestamps are
stored as naive UTC.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from backend.app.core.logging import EVENT_TREND_CREATED, EVENT_TRENDS_EXPIRED, log_event
from backend.app.models.leaderboard import TrendPhase
from backend.app.models.post_record import PostRecord
from backend.app.models.trend import TrendOut
from backend.app.models.trend_record import TrendRecord
from backend.app.services.store_utils import handle_operational_error, to_utc_naive

logger = logging.getLogger(__name__)


class TrendNotFoundError(Exception):
    """Raised when a trend cannot be found by id."""


class HashtagConflictError(Exception):
    """Raised when an active trend already uses the requested hashtag."""


def trend_phase(trend: TrendRecord, now: datetime) -> TrendPhase:
    """Derive the lifecycle phase of *trend* at *now*.

    ``active`` requires the active flag and ``start_date <= now <= end_date``.
    A deactivated trend reads as ``ended`` even inside its window.
    """
    now = to_utc_naive(now)
    start = to_utc_naive(trend.start_date)
    end = to_utc_naive(trend.end_date)
    if now < start:
        return TrendPhase.not_started
    if trend.is_active and now <= end:
        return TrendPhase.active
    return TrendPhase.ended


def is_live(trend: TrendRecord, now: datetime) -> bool:
    return trend_phase(trend, now) is TrendPhase.active


def to_trend_out(trend: TrendRecord, *, post_count: int, now: datetime) -> TrendOut:
    return TrendOut(
        id=trend.id,
        name=trend.name,
        hashtag=trend.hashtag,
        description=trend.description,
        start_date=trend.start_date,
        end_date=trend.end_date,
        is_active=trend.is_active,
        created_by=trend.created_by,
        created_at=trend.created_at,
        phase=trend_phase(trend, now),
        post_count=post_count,
    )


def _running_filter(now_naive: datetime) -> tuple:
    """Active flag set and window not yet closed."""
    return (TrendRecord.is_active.is_(True), TrendRecord.end_date >= now_naive)


def _post_count_column():
    return (
        select(func.count(PostRecord.id))
        .where(
            PostRecord.trend_id == TrendRecord.id,
            PostRecord.is_deleted.is_(False),
        )
        .correlate(TrendRecord)
        .scalar_subquery()
    )


# ---------------------------------------------------------------------------
# Repository methods
# ---------------------------------------------------------------------------


def get_trend(db: Session, trend_id: int) -> TrendRecord:
    """Fetch a trend by primary key.

    Raises:
        TrendNotFoundError: If no trend with *trend_id* exists.
    """
    trend = db.get(TrendRecord, trend_id)
    if trend is None:
        raise TrendNotFoundError(f"Trend not found: id={trend_id}")
    return trend


def count_trend_posts(db: Session, trend_id: int) -> int:
    """Count non-deleted posts under *trend_id*."""
    return (
        db.query(func.count(PostRecord.id))
        .filter(
            PostRecord.trend_id == trend_id,
            PostRecord.is_deleted.is_(False),
        )
        .scalar()
    ) or 0


def list_trends(
    db: Session,
    *,
    now: datetime,
    active_only: bool = False,
) -> list[TrendOut]:
    """List trends, active ones first, newest first within each group.

    Args:
        active_only: Keep only trends flagged active whose ``end_date`` has
            not passed.
    """
    now_naive = to_utc_naive(now)
    post_count = _post_count_column().label("post_count")
    query = db.query(TrendRecord, post_count)
    if active_only:
        query = query.filter(*_running_filter(now_naive))
    query = query.order_by(
        TrendRecord.is_active.desc(),
        TrendRecord.created_at.desc(),
        TrendRecord.id.desc(),
    )
    return [
        to_trend_out(trend, post_count=count or 0, now=now_naive)
        for trend, count in query.all()
    ]


def create_trend(
    db: Session,
    *,
    name: str,
    hashtag: str,
    created_by: int,
    now: datetime,
    duration_days: int,
    description: str | None = None,
    start_date: datetime | None = None,
) -> TrendRecord:
    """Open a new trend running *duration_days* from *start_date* (default *now*).

    Raises:
        HashtagConflictError: If a running trend already uses *hashtag*.
            A trend past its ``end_date`` frees the hashtag even before
            the expiry job clears its active flag.
    """
    now_naive = to_utc_naive(now)
    existing = (
        db.query(TrendRecord)
        .filter(TrendRecord.hashtag == hashtag, *_running_filter(now_naive))
        .first()
    )
    if existing is not None:
        raise HashtagConflictError(
            f"A trend with hashtag '{hashtag}' is already active"
        )

    start = to_utc_naive(start_date) if start_date is not None else now_naive
    trend = TrendRecord(
        name=name,
        hashtag=hashtag,
        description=description,
        start_date=start,
        end_date=start + timedelta(days=duration_days),
        is_active=True,
        created_by=created_by,
        created_at=now_naive,
    )
    db.add(trend)
    try:
        db.flush()
    except OperationalError as exc:
        handle_operational_error(exc, "create_trend")
    log_event(
        logger, "info", EVENT_TREND_CREATED,
        trend_id=trend.id, created_by=created_by, duration_days=duration_days,
    )
    return trend


def deactivate_ended_trends(db: Session, *, now: datetime) -> int:
    """Clear ``is_active`` on trends whose ``end_date`` has passed.

    Posts and leaderboards of those trends are untouched.  Returns the
    number of trends updated.
    """
    result = db.execute(
        update(TrendRecord)
        .where(
            TrendRecord.is_active.is_(True),
            TrendRecord.end_date < to_utc_naive(now),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    updated = result.rowcount or 0
    # loaded trends reread is_active from the database
    db.expire_all()
    log_event(logger, "info", EVENT_TRENDS_EXPIRED, updated=updated)
    return updated
