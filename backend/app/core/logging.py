"""Structured logging baseline and event taxonomy.

Event taxonomy (minimum set)::

    app_start               application process starting
    config_loaded           settings resolved successfully
    db_initialized          engine created, DB path resolved
    db_migration_started    alembic upgrade beginning
    db_migration_succeeded  alembic upgrade completed
    db_migration_failed     alembic upgrade error (with traceback)
    db_write_failed         repository write error
    db_read_failed          repository read error
    leaderboard_computed    leaderboard ranked for a trend
    trend_created           new trend persisted
    trends_expired          ended trends flagged inactive
    expiry_job_started      background trend expiry thread running
    expiry_job_stopped      background trend expiry thread joined
    expiry_job_failed       one expiry sweep raised (with traceback)
    post_created            post attached to a trend
    post_deleted            post soft-deleted
    like_added              like recorded
    like_removed            like removed
    comment_created         comment or reply recorded
    comment_updated         comment text edited by its author
    comment_deleted         comment (and its replies) soft-deleted

Rules:
    - Log record IDs, counts and content *lengths*, not raw content.

Usage::

    from backend.app.core.logging import log_event
    log_event(logger, "info", "like_added", post_id=3, user_id=7)
"""

import logging
import sys

# Canonical event names for grep-ability and observability.
EVENT_APP_START = "app_start"
EVENT_CONFIG_LOADED = "config_loaded"
EVENT_DB_INITIALIZED = "db_initialized"
EVENT_DB_MIGRATION_STARTED = "db_migration_started"
EVENT_DB_MIGRATION_SUCCEEDED = "db_migration_succeeded"
EVENT_DB_MIGRATION_FAILED = "db_migration_failed"
EVENT_DB_WRITE_FAILED = "db_write_failed"
EVENT_DB_READ_FAILED = "db_read_failed"
EVENT_LEADERBOARD_COMPUTED = "leaderboard_computed"
EVENT_TREND_CREATED = "trend_created"
EVENT_TRENDS_EXPIRED = "trends_expired"
EVENT_EXPIRY_JOB_STARTED = "expiry_job_started"
EVENT_EXPIRY_JOB_STOPPED = "expiry_job_stopped"
EVENT_EXPIRY_JOB_FAILED = "expiry_job_failed"
EVENT_POST_CREATED = "post_created"
EVENT_POST_DELETED = "post_deleted"
EVENT_LIKE_ADDED = "like_added"
EVENT_LIKE_REMOVED = "like_removed"
EVENT_COMMENT_CREATED = "comment_created"
EVENT_COMMENT_UPDATED = "comment_updated"
EVENT_COMMENT_DELETED = "comment_deleted"


_HANDLER_ATTR = "_trenz_leaderboard"


def setup_logging(level: int = logging.INFO) -> None:
    """Configure root logger with a simple structured format.

    Safe to call multiple times: only adds the handler once and
    restores it if Alembic's ``fileConfig()`` removes it.
    """
    root = logging.getLogger()
    root.setLevel(level)

    for h in root.handlers:
        if getattr(h, _HANDLER_ATTR, False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def log_event(
    logger: logging.Logger,
    level: str,
    event_name: str,
    **kwargs: object,
) -> None:
    """Emit a structured log line with consistent ``event_name: key=value`` format.

    Parameters
    ----------
    logger:
        The logger instance (provides the component via ``logger.name``).
    level:
        Log level name: ``"info"``, ``"warning"``, ``"error"``, or ``"exception"``.
    event_name:
        Canonical event name (e.g. ``"leaderboard_computed"``).
    **kwargs:
        Arbitrary key-value pairs appended as ``key=value``.
    """
    parts = " ".join(f"{k}={v}" for k, v in kwargs.items())
    message = f"{event_name}: {parts}" if parts else event_name
    log_fn = getattr(logger, level, logger.info)
    log_fn(message)
