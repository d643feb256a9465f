"""Trend leaderboard: aggregate engagement per author, then rank.

Pipeline
--------
1. Fetch every non-deleted post of the trend with live like and
   non-deleted comment counts (:mod:`engagement_store`).
2. Score each post with :func:`compute_engagement_score`.
3. Group by author, summing scores and collecting contributing posts.
4. Sort by total descending and assign ranks.

Nothing is cached or persisted: every call recomputes from the store, so
concurrent readers may see slightly different results while engagement is
still arriving on a live trend.

Ordering
--------
Totals sort descending.  Equal totals are ordered by the author's earliest
post under the trend (earlier wins), then by ``user_id`` ascending.

Rank assignment depends on :class:`RankingMode`:

* ``sequential``: 1, 2, 3, ... every entry gets a distinct rank, ties
  included, in the order above.
* ``competition``: equal totals share a rank and the next rank skips
  (1, 1, 3).
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.logging import EVENT_LEADERBOARD_COMPUTED, log_event
from backend.app.models.leaderboard import (
    LeaderboardEntry,
    LeaderboardMode,
    LeaderboardPost,
    LeaderboardResponse,
    LeaderboardStats,
    LeaderboardUser,
    RankingMode,
    TrendPhase,
)
from backend.app.models.trend_record import TrendRecord
from backend.app.services.engagement_scoring import compute_engagement_score
from backend.app.services.engagement_store import (
    EngagementStoreError,
    PostEngagement,
    list_trend_post_engagement,
)
from backend.app.services.trend_repository import get_trend, trend_phase

logger = logging.getLogger(__name__)


class TrendNotEndedError(Exception):
    """Raised when a final leaderboard is requested before the trend ends."""


@dataclass
class AggregateEntry:
    """Running total for one author within one trend."""

    user_id: int
    user: LeaderboardUser
    first_post_at: datetime
    posts: list[LeaderboardPost] = field(default_factory=list)
    total_score: float = 0.0


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------


def _post_summary(post: PostEngagement) -> LeaderboardPost:
    return LeaderboardPost(
        id=post.post_id,
        caption=post.caption,
        text_content=post.text_content,
        post_type=post.post_type,
        created_at=post.created_at,
        like_count=post.like_count,
        comment_count=post.comment_count,
    )


def aggregate_engagement(posts: Iterable[PostEngagement]) -> dict[int, AggregateEntry]:
    """Group *posts* by author and sum their scores.

    The author snapshot is captured from the first post seen for that
    author.  Every post, the first included, is appended to the author's
    post list and added to the running total.
    """
    entries: dict[int, AggregateEntry] = {}
    for post in posts:
        score = compute_engagement_score(
            post.like_count, post.comment_count, post.share_count,
        )
        entry = entries.get(post.author_id)
        if entry is None:
            entry = AggregateEntry(
                user_id=post.author_id,
                user=post.author,
                first_post_at=post.created_at,
            )
            entries[post.author_id] = entry
        elif post.created_at < entry.first_post_at:
            entry.first_post_at = post.created_at
        entry.posts.append(_post_summary(post))
        entry.total_score += score
    return entries


def aggregate_trend(db: Session, trend_id: int) -> dict[int, AggregateEntry]:
    """Fetch *trend_id*'s posts from the store and aggregate them."""
    return aggregate_engagement(list_trend_post_engagement(db, trend_id))


# ---------------------------------------------------------------------------
# Ranking
# ---------------------------------------------------------------------------


def _sort_key(entry: AggregateEntry) -> tuple[float, datetime, int]:
    return (-entry.total_score, entry.first_post_at, entry.user_id)


def rank_entries(
    entries: Iterable[AggregateEntry],
    ranking: RankingMode = RankingMode.sequential,
) -> list[LeaderboardEntry]:
    """Sort *entries* and annotate each with a 1-based rank."""
    ordered = sorted(entries, key=_sort_key)
    ranked: list[LeaderboardEntry] = []
    previous_score: float | None = None
    previous_rank = 0
    for position, entry in enumerate(ordered, start=1):
        if ranking is RankingMode.competition and entry.total_score == previous_score:
            rank = previous_rank
        else:
            rank = position
        ranked.append(
            LeaderboardEntry(
                user_id=entry.user_id,
                user=entry.user,
                posts=entry.posts,
                score=entry.total_score,
                rank=rank,
            )
        )
        previous_score = entry.total_score
        previous_rank = rank
    return ranked


# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------


def _load_trend(db: Session, trend_id: int) -> TrendRecord:
    try:
        return get_trend(db, trend_id)
    except SQLAlchemyError as exc:
        raise EngagementStoreError(f"Could not read trend {trend_id}") from exc


def get_leaderboard(
    db: Session,
    trend_id: int,
    *,
    now: datetime,
    mode: LeaderboardMode = LeaderboardMode.live,
    ranking: RankingMode = RankingMode.sequential,
    limit: int | None = None,
) -> LeaderboardResponse:
    """Compute the ranked leaderboard for *trend_id*.

    ``live`` mode works in every phase, including after the trend ended.
    ``final`` mode is the terminal view and requires an ended trend.
    *limit* truncates the output after ranking, so ranks stay global.

    Raises:
        TrendNotFoundError: If *trend_id* does not exist.
        TrendNotEndedError: If ``final`` is requested before the trend ends.
        EngagementStoreError: If the store cannot be read.
    """
    started = time.perf_counter()
    trend = _load_trend(db, trend_id)
    phase = trend_phase(trend, now)
    if mode is LeaderboardMode.final and phase is not TrendPhase.ended:
        raise TrendNotEndedError(
            f"Trend {trend_id} has not ended yet (phase={phase})"
        )

    posts = list_trend_post_engagement(db, trend_id)
    entries = rank_entries(aggregate_engagement(posts).values(), ranking)
    participants = len(entries)
    if limit is not None:
        entries = entries[:limit]

    log_event(
        logger, "info", EVENT_LEADERBOARD_COMPUTED,
        trend_id=trend_id,
        mode=mode,
        ranking=ranking,
        phase=phase,
        posts=len(posts),
        participants=participants,
        duration_ms=round((time.perf_counter() - started) * 1000),
    )
    return LeaderboardResponse(
        trend_id=trend_id,
        phase=phase,
        mode=mode,
        ranking=ranking,
        is_final=mode is LeaderboardMode.final,
        generated_at=now,
        entries=entries,
    )


def get_leaderboard_stats(db: Session, trend_id: int) -> LeaderboardStats:
    """Summarize participation and engagement for *trend_id*.

    Raises:
        TrendNotFoundError: If *trend_id* does not exist.
        EngagementStoreError: If the store cannot be read.
    """
    _load_trend(db, trend_id)
    posts = list_trend_post_engagement(db, trend_id)
    aggregates = aggregate_engagement(posts)
    return LeaderboardStats(
        trend_id=trend_id,
        participants=len(aggregates),
        total_posts=len(posts),
        total_likes=sum(p.like_count for p in posts),
        total_comments=sum(p.comment_count for p in posts),
        top_score=max((a.total_score for a in aggregates.values()), default=None),
    )
