"""Alembic migration runner for programmatic startup use."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory

from backend.app.core.logging import (
    EVENT_DB_MIGRATION_FAILED,
    EVENT_DB_MIGRATION_STARTED,
    EVENT_DB_MIGRATION_SUCCEEDED,
    log_event,
    setup_logging,
)
from backend.app.db.engine import engine

logger = logging.getLogger(__name__)

_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ALEMBIC_INI = _PROJECT_ROOT / "alembic.ini"


class MigrationError(Exception):
    """Raised when a migration fails with actionable context."""


def _get_alembic_cfg() -> Config:
    cfg = Config(str(_ALEMBIC_INI))
    cfg.set_main_option("script_location", str(_PROJECT_ROOT / "alembic"))
    return cfg


def get_current_revision() -> str | None:
    """Return the current Alembic revision of the database, or None."""
    with engine.connect() as conn:
        ctx = MigrationContext.configure(conn)
        return ctx.get_current_revision()


def get_head_revision() -> str:
    """Return the head revision from the migration scripts."""
    script = ScriptDirectory.from_config(_get_alembic_cfg())
    return script.get_current_head()  # type: ignore[return-value]


def check_schema_current() -> bool:
    """Return True if the DB is at the latest migration head."""
    current = get_current_revision()
    head = get_head_revision()
    if current != head:
        logger.warning(
            "db_schema_drift: current=%s head=%s, run 'make migrate'",
            current,
            head,
        )
        return False
    return True


def run_migrations() -> None:
    """Run ``alembic upgrade head`` programmatically.

    Alembic's env.py calls ``fileConfig()``, which reconfigures the root
    logger, so logging is re-applied afterwards.
    """
    current = get_current_revision()
    head = get_head_revision()
    log_event(logger, "info", EVENT_DB_MIGRATION_STARTED, current=current, head=head)
    if current == head:
        log_event(logger, "info", EVENT_DB_MIGRATION_SUCCEEDED, note="already_at_head")
        return
    try:
        command.upgrade(_get_alembic_cfg(), "head")
    except Exception as exc:
        log_event(
            logger, "exception", EVENT_DB_MIGRATION_FAILED,
            current=current, target="head", error=exc,
        )
        raise MigrationError(
            f"Migration failed (current={current}, target=head): {exc}. "
            f"Check alembic/versions/ for the failing migration."
        ) from exc
    finally:
        setup_logging()
    log_event(logger, "info", EVENT_DB_MIGRATION_SUCCEEDED, new_head=get_head_revision())
