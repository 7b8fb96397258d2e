"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from backend.app.api.routes.bookmarks import router as bookmarks_router
from backend.app.api.routes.health import router as health_router
from backend.app.api.routes.ideas import router as ideas_router
from backend.app.api.routes.jobs import router as jobs_router
from backend.app.api.routes.moderation import router as moderation_router
from backend.app.api.routes.votes import router as votes_router
from backend.app.core.errors import normalize_unknown_error
from backend.app.core.logging import (
    EVENT_APP_START,
    EVENT_CONFIG_LOADED,
    log_event,
    setup_logging,
)
from backend.app.core.scheduler import (
    start_trending_recompute_scheduler,
    stop_trending_recompute_scheduler,
)
from backend.app.core.settings import settings
from backend.app.db.engine import init_db
from backend.app.db.migrations import run_migrations

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    log_event(logger, "info", EVENT_APP_START, title=fastapi_app.title)
    log_event(logger, "info", EVENT_CONFIG_LOADED, **settings.safe_dump())
    init_db()
    run_migrations()
    if settings.trending_recompute_enabled:
        start_trending_recompute_scheduler(settings.trending_recompute_interval_seconds)
    yield
    stop_trending_recompute_scheduler()
    logger.info("Idea Engagement API shutting down")


app = FastAPI(
    title="Idea Engagement API",
    version="0.1.0",
    description="Votes, trending scores, bookmarks and author statistics for shared ideas.",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: log details, return safe generic message."""
    error = normalize_unknown_error(exc, operation=f"{request.method} {request.url.path}")
    return JSONResponse(
        status_code=error.http_status,
        content={"detail": error.user_message},
    )


app.include_router(health_router, tags=["health"])
app.include_router(votes_router, tags=["votes"])
app.include_router(ideas_router, tags=["ideas"])
app.include_router(bookmarks_router, tags=["bookmarks"])
app.include_router(moderation_router, tags=["moderation"])
app.include_router(jobs_router, tags=["jobs"])
