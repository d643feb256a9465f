"""SQLAlchemy engine for the engagement store (SQLite)."""

import logging
from pathlib import Path

from sqlalchemy import create_engine, event, text

from backend.app.core.logging import EVENT_DB_INITIALIZED, log_event
from backend.app.core.settings import settings

logger = logging.getLogger(__name__)

# SQLite creates the file but not its directory
_db_path = Path(settings.app_db_path)
_db_path.parent.mkdir(parents=True, exist_ok=True)


def get_resolved_db_path() -> Path:
    """Return the resolved absolute path to the SQLite database file."""
    return _db_path.resolve()


engine = create_engine(
    settings.database_url,
    echo=settings.debug,
    connect_args={"check_same_thread": False},  # sessions cross threadpool workers
)


@event.listens_for(engine, "connect")
def _configure_sqlite(dbapi_connection, _connection_record) -> None:  # type: ignore[no-untyped-def]
    """Enforce foreign keys and wait on writer locks instead of failing at once."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={settings.app_db_busy_timeout_ms}")
    cursor.close()


log_event(
    logger, "info", EVENT_DB_INITIALIZED,
    path=get_resolved_db_path(),
    busy_timeout_ms=settings.app_db_busy_timeout_ms,
)


class DatabaseInitError(Exception):
    """Raised when the database cannot be opened at startup."""


def init_db() -> None:
    """Open a connection and run ``SELECT 1`` against the configured file.

    Raises:
        DatabaseInitError: With guidance on fixing ``APP_DB_PATH``.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        msg = (
            f"Cannot open database at '{get_resolved_db_path()}': {exc}. "
            f"Check file permissions or set APP_DB_PATH to a writable location."
        )
        logger.error("db_init_failed: %s", msg)
        raise DatabaseInitError(msg) from exc
    logger.info("db_init_verified: path=%s", get_resolved_db_path())
