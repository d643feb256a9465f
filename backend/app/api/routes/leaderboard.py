"""GET /api/v1/trends/{trend_id}/leaderboard returns ranked engagement per author."""

import logging
import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from backend.app.api.dependencies import MAX_ID
from backend.app.core.errors import normalize_db_error
from backend.app.core.logging import EVENT_DB_READ_FAILED
from backend.app.core.settings import settings
from backend.app.db.session import get_db
from backend.app.models.leaderboard import (
    LeaderboardMode,
    LeaderboardResponse,
    LeaderboardStats,
    RankingMode,
)
from backend.app.services.engagement_store import EngagementStoreError
from backend.app.services.leaderboard import (
    TrendNotEndedError,
    get_leaderboard,
    get_leaderboard_stats,
)
from backend.app.services.trend_repository import TrendNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_failure(exc: EngagementStoreError, operation: str, correlation_id: str) -> HTTPException:
    error = normalize_db_error(
        exc.__cause__ or exc,
        operation=operation,
        correlation_id=correlation_id,
        event_name=EVENT_DB_READ_FAILED,
    )
    return error.to_http_exception()


@router.get("/api/v1/trends/{trend_id}/leaderboard", response_model=LeaderboardResponse)
def read_leaderboard(
    trend_id: int = Path(..., ge=1, le=MAX_ID),
    mode: LeaderboardMode = LeaderboardMode.live,
    ranking: RankingMode | None = None,
    limit: int | None = Query(default=None, ge=1, le=settings.leaderboard_max_limit),
    db: Session = Depends(get_db),
) -> LeaderboardResponse:
    """Recompute and return the trend's leaderboard.

    Polling ``mode=live`` during an active trend is expected; each call
    reflects engagement as of that request.
    """
    correlation_id = str(uuid.uuid4())
    try:
        return get_leaderboard(
            db,
            trend_id,
            now=datetime.now(UTC),
            mode=mode,
            ranking=ranking or RankingMode(settings.leaderboard_ranking),
            limit=limit,
        )
    except TrendNotFoundError:
        raise HTTPException(status_code=404, detail="trend not found")
    except TrendNotEndedError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except EngagementStoreError as exc:
        raise _store_failure(exc, "get_leaderboard", correlation_id)


@router.get(
    "/api/v1/trends/{trend_id}/leaderboard/stats", response_model=LeaderboardStats,
)
def read_leaderboard_stats(
    trend_id: int = Path(..., ge=1, le=MAX_ID),
    db: Session = Depends(get_db),
) -> LeaderboardStats:
    """Participation and engagement totals for the trend stats view."""
    correlation_id = str(uuid.uuid4())
    try:
        return get_leaderboard_stats(db, trend_id)
    except TrendNotFoundError:
        raise HTTPException(status_code=404, detail="trend not found")
    except EngagementStoreError as exc:
        raise _store_failure(exc, "get_leaderboard_stats", correlation_id)
