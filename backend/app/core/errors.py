"""Error normalization for API responses.

Store failures, validation failures and unexpected exceptions are all
reduced to a :class:`NormalizedError` before reaching a caller.  The HTTP
body is always ``{"error": <user_message>}``; SQL, file paths and
tracebacks only go to the log.
"""

import logging
from dataclasses import dataclass

from fastapi import HTTPException

from backend.app.core.logging import EVENT_DB_WRITE_FAILED, log_event

logger = logging.getLogger(__name__)

_LOCK_MARKERS = ("locked", "busy")
_PERMISSION_MARKERS = ("readonly", "read-only", "permission")
_CONSTRAINT_MARKERS = ("constraint failed", "integrity")


@dataclass(frozen=True)
class NormalizedError:
    """One failure as the API reports it."""

    user_message: str
    error_category: str
    retryable: bool
    http_status: int = 500

    def as_body(self) -> dict[str, str]:
        return {"error": self.user_message}

    def to_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.http_status, detail=self.user_message)


def _classify_db_error(message: str) -> NormalizedError:
    if any(marker in message for marker in _LOCK_MARKERS):
        return NormalizedError(
            user_message="The database is temporarily busy. Please try again in a moment.",
            error_category="db_locked",
            retryable=True,
            http_status=503,
        )
    if any(marker in message for marker in _PERMISSION_MARKERS):
        return NormalizedError(
            user_message=(
                "A database permission error occurred. "
                "Check APP_DB_PATH points to a writable location."
            ),
            error_category="db_permission",
            retryable=False,
        )
    if any(marker in message for marker in _CONSTRAINT_MARKERS):
        return NormalizedError(
            user_message="The request conflicts with existing data.",
            error_category="db_constraint",
            retryable=False,
            http_status=409,
        )
    return NormalizedError(
        user_message="A database error occurred. Please try again.",
        error_category="db",
        retryable=True,
    )


def normalize_db_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
    event_name: str = EVENT_DB_WRITE_FAILED,
) -> NormalizedError:
    """Classify a store failure and log it under *event_name*.

    Locked or busy databases map to 503 (retryable), constraint violations
    to 409, everything else to 500.
    """
    error = _classify_db_error(str(exc).lower())
    log_event(
        logger, "error", event_name,
        operation=operation,
        error_category=error.error_category,
        retryable=error.retryable,
        correlation_id=correlation_id or "N/A",
        detail=str(exc),
    )
    return error


def normalize_validation_error(messages: list[str]) -> NormalizedError:
    """Join request validation messages into one 422 error."""
    return NormalizedError(
        user_message=f"Validation failed: {'; '.join(messages)}",
        error_category="validation",
        retryable=False,
        http_status=422,
    )


def normalize_unknown_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Log the traceback and hide everything about *exc* from the caller."""
    log_event(
        logger, "exception", "unknown_error",
        operation=operation,
        error_category="unknown",
        correlation_id=correlation_id or "N/A",
        detail=f"{type(exc).__name__}: {exc}",
    )
    return NormalizedError(
        user_message="An unexpected error occurred. Please try again.",
        error_category="unknown",
        retryable=False,
    )
