"""Tests for the structured logging baseline and event taxonomy."""

import logging
from datetime import UTC, datetime, timedelta

import pytest
from backend.app.core.logging import (
    EVENT_APP_START,
    EVENT_COMMENT_CREATED,
    EVENT_CONFIG_LOADED,
    EVENT_DB_INITIALIZED,
    EVENT_DB_MIGRATION_FAILED,
    EVENT_DB_MIGRATION_STARTED,
    EVENT_DB_MIGRATION_SUCCEEDED,
    EVENT_DB_READ_FAILED,
    EVENT_DB_WRITE_FAILED,
    EVENT_LEADERBOARD_COMPUTED,
    EVENT_LIKE_ADDED,
    EVENT_TRENDS_EXPIRED,
    log_event,
    setup_logging,
)
from backend.app.db.base import Base
from backend.app.models.post_record import PostRecord
from backend.app.models.trend_record import TrendRecord
from backend.app.models.user_record import UserRecord
from backend.app.services.leaderboard import get_leaderboard
from backend.app.services.post_repository import create_comment
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


def _seed_post(db: Session) -> PostRecord:
    user = UserRecord(username="alice", created_at=_NOW)
    trend = TrendRecord(
        name="Summer", hashtag="summer",
        start_date=_NOW - timedelta(days=1), end_date=_NOW + timedelta(days=1),
        created_at=_NOW,
    )
    db.add_all([user, trend])
    db.flush()
    post = PostRecord(
        user_id=user.id, trend_id=trend.id, post_type="text",
        text_content="hello", created_at=_NOW,
    )
    db.add(post)
    db.commit()
    return post


# ---------------------------------------------------------------------------
# Line format
# ---------------------------------------------------------------------------


class TestLogEventFormat:
    def test_log_event_emits_event_name(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "test_event", key="value")
        assert "test_event: key=value" in caplog.text

    def test_log_event_without_kwargs(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.component")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "bare_event")
        assert caplog.records[-1].getMessage() == "bare_event"

    def test_log_event_component_in_record(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("backend.app.services.leaderboard")
        with caplog.at_level(logging.INFO):
            log_event(test_logger, "info", "test_event")
        assert any(
            r.name == "backend.app.services.leaderboard" for r in caplog.records
        )

    def test_log_event_warning_level(
        self, caplog: pytest.LogCaptureFixture,
    ) -> None:
        test_logger = logging.getLogger("test.warn")
        with caplog.at_level(logging.WARNING):
            log_event(test_logger, "warning", "warn_event", detail="x")
        assert caplog.records[0].levelname == "WARNING"

    def test_setup_logging_is_idempotent(self) -> None:
        setup_logging()
        before = len(logging.getLogger().handlers)
        setup_logging()
        assert len(logging.getLogger().handlers) == before


# ---------------------------------------------------------------------------
# Domain events carry ids and counts, never content
# ---------------------------------------------------------------------------


class TestDomainEvents:
    def test_leaderboard_computed_logged(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        post = _seed_post(db)
        with caplog.at_level(logging.INFO):
            get_leaderboard(db, post.trend_id, now=_NOW)
        assert EVENT_LEADERBOARD_COMPUTED in caplog.text
        assert f"trend_id={post.trend_id}" in caplog.text
        assert "participants=1" in caplog.text

    def test_comment_logs_length_not_content(
        self, db: Session, caplog: pytest.LogCaptureFixture,
    ) -> None:
        post = _seed_post(db)
        secret = "my private opinion about this photo"
        with caplog.at_level(logging.INFO):
            create_comment(
                db, post.id, user_id=post.user_id, content=secret, created_at=_NOW,
            )
        assert EVENT_COMMENT_CREATED in caplog.text
        assert f"content_len={len(secret)}" in caplog.text
        assert secret not in caplog.text


# ---------------------------------------------------------------------------
# Event taxonomy completeness
# ---------------------------------------------------------------------------


class TestEventTaxonomy:
    def test_all_events_defined(self) -> None:
        assert EVENT_APP_START == "app_start"
        assert EVENT_CONFIG_LOADED == "config_loaded"
        assert EVENT_DB_INITIALIZED == "db_initialized"
        assert EVENT_DB_MIGRATION_STARTED == "db_migration_started"
        assert EVENT_DB_MIGRATION_SUCCEEDED == "db_migration_succeeded"
        assert EVENT_DB_MIGRATION_FAILED == "db_migration_failed"
        assert EVENT_DB_WRITE_FAILED == "db_write_failed"
        assert EVENT_DB_READ_FAILED == "db_read_failed"
        assert EVENT_LEADERBOARD_COMPUTED == "leaderboard_computed"
        assert EVENT_LIKE_ADDED == "like_added"
        assert EVENT_TRENDS_EXPIRED == "trends_expired"
