"""Exceptions and helpers shared by the engagement store repositories."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import NoReturn

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class DatabaseLockedError(Exception):
    """Raised when the database is locked by another process (retryable)."""


def to_utc_naive(value: datetime) -> datetime:
    """Convert *value* to naive UTC; naive inputs are assumed to be UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


class PermissionDeniedError(Exception):
    """Raised when the acting user does not own the targeted record."""


def handle_operational_error(exc: OperationalError, operation: str) -> NoReturn:
    """Check for database-locked errors and raise a categorized exception."""
    msg = str(exc).lower()
    if "locked" in msg or "busy" in msg:
        logger.warning(
            "db_write_failed: operation=%s reason=database_locked (retryable)",
            operation,
        )
        raise DatabaseLockedError(
            f"Database is locked during '{operation}'. "
            f"Another process may be writing. Please retry."
        ) from exc
    raise exc
