"""Background trend expiry.

A single daemon thread wakes every ``TREND_EXPIRY_INTERVAL_SECONDS`` and
clears ``is_active`` on trends whose window has closed.  A failing sweep
is logged and the next one still runs; nothing here can take the API down.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime

from backend.app.core.logging import (
    EVENT_EXPIRY_JOB_FAILED,
    EVENT_EXPIRY_JOB_STARTED,
    EVENT_EXPIRY_JOB_STOPPED,
    log_event,
)
from backend.app.db.session import SessionLocal
from backend.app.services.trend_repository import deactivate_ended_trends

logger = logging.getLogger(__name__)


class ExpiryJob:
    """Call *sweep* every *interval_seconds* until :meth:`stop` is called.

    The first sweep happens one interval after :meth:`start`.
    """

    def __init__(self, sweep: Callable[[], None], interval_seconds: float) -> None:
        self._sweep = sweep
        self._interval = interval_seconds
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _loop(self) -> None:
        # wait() returns True once stop() sets the event
        while not self._stopped.wait(self._interval):
            try:
                self._sweep()
            except Exception:
                log_event(
                    logger, "exception", EVENT_EXPIRY_JOB_FAILED,
                    sweep=self._sweep.__name__,
                )

    def start(self) -> None:
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._loop, name="trend-expiry", daemon=True,
        )
        self._thread.start()
        log_event(
            logger, "info", EVENT_EXPIRY_JOB_STARTED,
            sweep=self._sweep.__name__, interval_seconds=self._interval,
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stopped.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        log_event(logger, "info", EVENT_EXPIRY_JOB_STOPPED, sweep=self._sweep.__name__)


# ---------------------------------------------------------------------------
# Process-wide expiry job, driven by the app lifespan
# ---------------------------------------------------------------------------

_expiry_job: ExpiryJob | None = None


def _run_trend_expiry() -> None:
    """One sweep in its own session: deactivate ended trends and commit."""
    db = SessionLocal()
    try:
        deactivate_ended_trends(db, now=datetime.now(UTC))
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def start_trend_expiry_scheduler(interval_seconds: int) -> None:
    """Start the expiry job, replacing any job already running."""
    global _expiry_job  # noqa: PLW0603
    if _expiry_job is not None:
        _expiry_job.stop()
    _expiry_job = ExpiryJob(_run_trend_expiry, interval_seconds)
    _expiry_job.start()


def stop_trend_expiry_scheduler() -> None:
    global _expiry_job  # noqa: PLW0603
    if _expiry_job is not None:
        _expiry_job.stop()
        _expiry_job = None
