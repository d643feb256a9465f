"""Tests for the trend expiry job and its background scheduler."""

import logging
import threading
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from backend.app.core.scheduler import (
    ExpiryJob,
    _run_trend_expiry,
    start_trend_expiry_scheduler,
    stop_trend_expiry_scheduler,
)
from backend.app.db.base import Base
from backend.app.models.trend_record import TrendRecord
from backend.app.models.user_record import UserRecord  # noqa: F401
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


@pytest.fixture()
def factory() -> sessionmaker[Session]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)


def _add_trend(db: Session, hashtag: str, *, end: datetime) -> TrendRecord:
    trend = TrendRecord(
        name=hashtag, hashtag=hashtag, start_date=end - timedelta(days=7),
        end_date=end, is_active=True, created_at=end - timedelta(days=7),
    )
    db.add(trend)
    db.flush()
    return trend


# ---------------------------------------------------------------------------
# Expiry job
# ---------------------------------------------------------------------------


class TestRunTrendExpiry:
    def test_ended_trends_deactivated_running_trends_kept(
        self, factory: sessionmaker[Session],
    ) -> None:
        now = datetime.now(UTC)
        with factory() as db:
            ended = _add_trend(db, "ended", end=now - timedelta(hours=1))
            running = _add_trend(db, "running", end=now + timedelta(days=1))
            db.commit()
            ended_id, running_id = ended.id, running.id

        with patch("backend.app.core.scheduler.SessionLocal", factory):
            _run_trend_expiry()

        with factory() as db:
            assert db.get(TrendRecord, ended_id).is_active is False
            assert db.get(TrendRecord, running_id).is_active is True

    def test_failure_rolls_back_and_propagates(
        self, factory: sessionmaker[Session],
    ) -> None:
        with (
            patch("backend.app.core.scheduler.SessionLocal", factory),
            patch(
                "backend.app.core.scheduler.deactivate_ended_trends",
                side_effect=RuntimeError("boom"),
            ),
            pytest.raises(RuntimeError, match="boom"),
        ):
            _run_trend_expiry()


# ---------------------------------------------------------------------------
# ExpiryJob
# ---------------------------------------------------------------------------


class TestExpiryJob:
    def test_job_runs_repeatedly_until_stopped(self) -> None:
        ran = threading.Event()
        calls: list[int] = []

        def tick() -> None:
            calls.append(1)
            if len(calls) >= 2:
                ran.set()

        job = ExpiryJob(tick, interval_seconds=0.01)
        job.start()
        try:
            assert ran.wait(timeout=2.0)
        finally:
            job.stop()
        assert len(calls) >= 2

    def test_job_exception_does_not_stop_schedule(self) -> None:
        ran = threading.Event()
        calls: list[int] = []

        def flaky() -> None:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("first run fails")
            ran.set()

        job = ExpiryJob(flaky, interval_seconds=0.01)
        job.start()
        try:
            assert ran.wait(timeout=2.0)
        finally:
            job.stop()

    def test_module_scheduler_start_stop(self) -> None:
        with patch("backend.app.core.scheduler.ExpiryJob") as job_cls:
            start_trend_expiry_scheduler(60)
            job_cls.assert_called_once_with(_run_trend_expiry, 60)
            job_cls.return_value.start.assert_called_once()
            stop_trend_expiry_scheduler()
            job_cls.return_value.stop.assert_called_once()

    def test_failed_sweep_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        ran = threading.Event()

        def broken() -> None:
            ran.set()
            raise RuntimeError("sweep exploded")

        job = ExpiryJob(broken, interval_seconds=0.01)
        with caplog.at_level(logging.ERROR):
            job.start()
            try:
                assert ran.wait(timeout=2.0)
            finally:
                job.stop()
        assert "expiry_job_failed" in caplog.text
        assert "sweep=broken" in caplog.text

    def test_stop_joins_thread(self) -> None:
        job = ExpiryJob(lambda: None, interval_seconds=60)
        job.start()
        assert job.running is True
        job.stop()
        assert job.running is False
