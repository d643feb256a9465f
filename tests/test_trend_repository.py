"""Tests for trend phases, creation, listing and expiry."""

from datetime import UTC, datetime, timedelta

import pytest
from backend.app.db.base import Base
from backend.app.models.leaderboard import TrendPhase
from backend.app.models.post_record import PostRecord
from backend.app.models.trend import TrendCreate
from backend.app.models.trend_record import TrendRecord
from backend.app.models.user_record import UserRecord
from backend.app.services.store_utils import to_utc_naive
from backend.app.services.trend_repository import (
    HashtagConflictError,
    TrendNotFoundError,
    count_trend_posts,
    create_trend,
    deactivate_ended_trends,
    get_trend,
    list_trends,
    trend_phase,
)
from pydantic import ValidationError
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

_NOW = datetime(2025, 6, 10, 12, 0, 0, tzinfo=UTC)


@pytest.fixture()
def db() -> Session:  # type: ignore[misc]
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def owner(db: Session) -> UserRecord:
    user = UserRecord(username="owner", created_at=_NOW)
    db.add(user)
    db.commit()
    return user


def _trend(
    *, start: datetime, end: datetime, is_active: bool = True,
) -> TrendRecord:
    start, end = to_utc_naive(start), to_utc_naive(end)
    return TrendRecord(
        name="T", hashtag="t", start_date=start, end_date=end,
        is_active=is_active, created_at=start,
    )


# ---------------------------------------------------------------------------
# Phase derivation
# ---------------------------------------------------------------------------


class TestTrendPhase:
    def test_before_start_is_not_started(self) -> None:
        trend = _trend(start=_NOW + timedelta(hours=1), end=_NOW + timedelta(days=1))
        assert trend_phase(trend, _NOW) is TrendPhase.not_started

    def test_inside_window_is_active(self) -> None:
        trend = _trend(start=_NOW - timedelta(days=1), end=_NOW + timedelta(days=1))
        assert trend_phase(trend, _NOW) is TrendPhase.active

    def test_window_bounds_are_inclusive(self) -> None:
        trend = _trend(start=_NOW, end=_NOW)
        assert trend_phase(trend, _NOW) is TrendPhase.active

    def test_after_end_is_ended(self) -> None:
        trend = _trend(start=_NOW - timedelta(days=2), end=_NOW - timedelta(seconds=1))
        assert trend_phase(trend, _NOW) is TrendPhase.ended

    def test_deactivated_trend_reads_as_ended(self) -> None:
        trend = _trend(
            start=_NOW - timedelta(days=1), end=_NOW + timedelta(days=1), is_active=False,
        )
        assert trend_phase(trend, _NOW) is TrendPhase.ended

    def test_naive_stored_dates_compare_with_aware_now(self) -> None:
        trend = _trend(
            start=datetime(2025, 6, 9, 12, 0, 0), end=datetime(2025, 6, 11, 12, 0, 0),
        )
        assert trend_phase(trend, _NOW) is TrendPhase.active


# ---------------------------------------------------------------------------
# Create and fetch
# ---------------------------------------------------------------------------


class TestCreateTrend:
    def test_create_uses_duration(self, db: Session, owner: UserRecord) -> None:
        trend = create_trend(
            db, name="Summer", hashtag="summer", created_by=owner.id,
            now=_NOW, duration_days=14,
        )
        db.commit()
        fetched = get_trend(db, trend.id)
        assert fetched.is_active is True
        assert fetched.end_date - fetched.start_date == timedelta(days=14)
        assert fetched.start_date == _NOW.replace(tzinfo=None)

    def test_explicit_start_date(self, db: Session, owner: UserRecord) -> None:
        start = _NOW + timedelta(days=3)
        trend = create_trend(
            db, name="Soon", hashtag="soon", created_by=owner.id,
            now=_NOW, duration_days=1, start_date=start,
        )
        assert trend_phase(trend, _NOW) is TrendPhase.not_started

    def test_active_hashtag_conflict(self, db: Session, owner: UserRecord) -> None:
        create_trend(
            db, name="A", hashtag="summer", created_by=owner.id, now=_NOW, duration_days=1,
        )
        with pytest.raises(HashtagConflictError):
            create_trend(
                db, name="B", hashtag="summer", created_by=owner.id,
                now=_NOW, duration_days=1,
            )

    def test_hashtag_reusable_after_deactivation(
        self, db: Session, owner: UserRecord,
    ) -> None:
        first = create_trend(
            db, name="A", hashtag="summer", created_by=owner.id, now=_NOW, duration_days=1,
        )
        first.is_active = False
        db.flush()
        second = create_trend(
            db, name="B", hashtag="summer", created_by=owner.id, now=_NOW, duration_days=1,
        )
        assert second.id != first.id

    def test_hashtag_of_ended_trend_reusable_before_expiry(
        self, db: Session, owner: UserRecord,
    ) -> None:
        stale = _trend(start=_NOW - timedelta(days=8), end=_NOW - timedelta(days=1))
        stale.hashtag = "summer"
        db.add(stale)
        db.flush()
        assert stale.is_active is True

        fresh = create_trend(
            db, name="B", hashtag="summer", created_by=owner.id, now=_NOW, duration_days=1,
        )
        assert fresh.id != stale.id
        listed = list_trends(db, now=_NOW, active_only=True)
        assert [t.id for t in listed] == [fresh.id]

    def test_missing_trend(self, db: Session) -> None:
        with pytest.raises(TrendNotFoundError):
            get_trend(db, 404)


class TestTrendCreateModel:
    def test_hashtag_normalized(self) -> None:
        body = TrendCreate(name=" Summer ", hashtag=" #SummerVibes ")
        assert body.hashtag == "summervibes"
        assert body.name == "Summer"

    def test_hashtag_charset_enforced(self) -> None:
        with pytest.raises(ValidationError):
            TrendCreate(name="Bad", hashtag="two words")

    def test_duration_bounds(self) -> None:
        with pytest.raises(ValidationError):
            TrendCreate(name="Long", hashtag="long", duration_days=0)


# ---------------------------------------------------------------------------
# Listing and post counts
# ---------------------------------------------------------------------------


class TestListTrends:
    def _seed(self, db: Session, owner: UserRecord) -> tuple[TrendRecord, TrendRecord]:
        old = _trend(start=_NOW - timedelta(days=10), end=_NOW - timedelta(days=3))
        old.hashtag = "old"
        old.is_active = False
        live = _trend(start=_NOW - timedelta(days=1), end=_NOW + timedelta(days=5))
        live.hashtag = "live"
        db.add_all([old, live])
        db.flush()
        db.add_all([
            PostRecord(
                user_id=owner.id, trend_id=live.id, post_type="text",
                text_content="x", created_at=_NOW,
            ),
            PostRecord(
                user_id=owner.id, trend_id=live.id, post_type="text",
                text_content="y", created_at=_NOW, is_deleted=True,
            ),
        ])
        db.commit()
        return old, live

    def test_active_first_with_phase_and_count(
        self, db: Session, owner: UserRecord,
    ) -> None:
        old, live = self._seed(db, owner)
        trends = list_trends(db, now=_NOW)
        assert [t.id for t in trends] == [live.id, old.id]
        assert trends[0].phase is TrendPhase.active
        assert trends[0].post_count == 1
        assert trends[1].phase is TrendPhase.ended

    def test_active_only_filter(self, db: Session, owner: UserRecord) -> None:
        _, live = self._seed(db, owner)
        assert [t.id for t in list_trends(db, now=_NOW, active_only=True)] == [live.id]

    def test_count_excludes_deleted_posts(self, db: Session, owner: UserRecord) -> None:
        _, live = self._seed(db, owner)
        assert count_trend_posts(db, live.id) == 1


# ---------------------------------------------------------------------------
# Expiry
# ---------------------------------------------------------------------------


class TestDeactivateEndedTrends:
    def test_only_ended_trends_flagged(self, db: Session) -> None:
        ended = _trend(start=_NOW - timedelta(days=5), end=_NOW - timedelta(days=1))
        ended.hashtag = "ended"
        running = _trend(start=_NOW - timedelta(days=1), end=_NOW + timedelta(days=1))
        running.hashtag = "running"
        db.add_all([ended, running])
        db.commit()

        assert deactivate_ended_trends(db, now=_NOW) == 1
        db.commit()
        db.expire_all()
        assert get_trend(db, ended.id).is_active is False
        assert get_trend(db, running.id).is_active is True

    def test_second_run_is_noop(self, db: Session) -> None:
        ended = _trend(start=_NOW - timedelta(days=5), end=_NOW - timedelta(days=1))
        db.add(ended)
        db.commit()
        deactivate_ended_trends(db, now=_NOW)
        assert deactivate_ended_trends(db, now=_NOW) == 0

    def test_loaded_trends_refreshed_after_expiry(self, db: Session) -> None:
        ended = _trend(start=_NOW - timedelta(days=5), end=_NOW - timedelta(days=1))
        db.add(ended)
        db.commit()
        deactivate_ended_trends(db, now=_NOW)
        assert ended.is_active is False

    def test_session_holding_aware_dates_still_expires(self, db: Session) -> None:
        # built without normalizing, as a caller might
        ended = TrendRecord(
            name="Aware", hashtag="aware",
            start_date=_NOW - timedelta(days=5), end_date=_NOW - timedelta(days=1),
            is_active=True, created_at=_NOW - timedelta(days=5),
        )
        db.add(ended)
        db.commit()
        assert deactivate_ended_trends(db, now=_NOW) == 1
        db.commit()
        assert get_trend(db, ended.id).is_active is False
