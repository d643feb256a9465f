"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.leaderboard import router as leaderboard_router
from backend.app.api.routes.posts import router as posts_router
from backend.app.api.routes.trends import router as trends_router
from backend.app.api.routes.users import router as users_router
from backend.app.core.errors import normalize_unknown_error, normalize_validation_error
from backend.app.core.logging import EVENT_APP_START, EVENT_CONFIG_LOADED, setup_logging
from backend.app.core.settings import settings
from backend.app.db.engine import init_db
from backend.app.db.migrations import run_migrations

setup_logging(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    logger.info(EVENT_APP_START)
    logger.info("%s: %s", EVENT_CONFIG_LOADED, settings.safe_dump())
    init_db()
    run_migrations()
    if settings.trend_expiry_enabled:
        from backend.app.core.scheduler import start_trend_expiry_scheduler

        start_trend_expiry_scheduler(settings.trend_expiry_interval_seconds)
    logger.info("Trenz Leaderboard API ready")
    yield
    if settings.trend_expiry_enabled:
        from backend.app.core.scheduler import stop_trend_expiry_scheduler

        stop_trend_expiry_scheduler()
    logger.info("Trenz Leaderboard API shutting down")


app = FastAPI(
    title="Trenz Leaderboard API",
    version="0.1.0",
    description="Trend leaderboards computed from live post engagement.",
    lifespan=lifespan,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    _request: Request, exc: StarletteHTTPException,
) -> JSONResponse:
    """Render every HTTP error as ``{"error": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    _request: Request, exc: RequestValidationError,
) -> JSONResponse:
    """Reject malformed ids and bodies before any store access."""
    messages = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    error = normalize_validation_error(messages)
    return JSONResponse(status_code=error.http_status, content=error.as_body())


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: log details, return a safe generic message."""
    error = normalize_unknown_error(exc, operation=f"{request.method} {request.url.path}")
    return JSONResponse(status_code=error.http_status, content=error.as_body())


app.include_router(health_router, tags=["health"])
app.include_router(users_router, tags=["users"])
app.include_router(trends_router, tags=["trends"])
app.include_router(leaderboard_router, tags=["leaderboard"])
app.include_router(posts_router, tags=["posts"])
