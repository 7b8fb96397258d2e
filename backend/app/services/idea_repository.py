"""Repository for Idea CRUD operations.

All methods operate on a caller-supplied SQLAlchemy ``Session`` so that
transaction boundaries remain under the caller's control.  Vote fields are
deliberately absent from this module: ``upvote_count`` and ``voter_ids``
are only ever written by :mod:`backend.app.services.vote_engine`.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import delete
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import backend.app.services.idea_events  # noqa: F401  (registers the creation trigger)
from backend.app.core.logging import EVENT_DB_READ_FAILED, log_event
from backend.app.models.bookmark import Bookmark
from backend.app.models.idea import Idea

logger = logging.getLogger(__name__)


class IdeaNotFoundError(Exception):
    """Raised when an Idea cannot be found by id."""


class DatabaseLockedError(Exception):
    """Raised when the database is locked by another process (retryable)."""


def is_locked_error(exc: OperationalError) -> bool:
    msg = str(exc).lower()
    return "locked" in msg or "busy" in msg


def _handle_operational_error(exc: OperationalError, operation: str) -> None:
    """Check for database-locked errors and raise a categorized exception."""
    if is_locked_error(exc):
        logger.warning(
            "db_write_failed: operation=%s reason=database_locked (retryable)",
            operation,
        )
        raise DatabaseLockedError(
            f"Database is locked during '{operation}'. "
            f"Another process may be writing. Please retry."
        ) from exc
    raise exc


def _log_read_failure(exc: OperationalError, operation: str) -> None:
    log_event(
        logger, "error", EVENT_DB_READ_FAILED,
        operation=operation,
        retryable=is_locked_error(exc),
        detail=str(exc),
    )


# ---------------------------------------------------------------------------
# Repository methods
# ---------------------------------------------------------------------------


def create_idea(
    db: Session,
    *,
    author_id: str,
    title: str,
    created_at: datetime,
    category: str = "general",
    idea_id: str | None = None,
) -> Idea:
    """Create a new Idea with an empty vote ledger and flush it.

    The author's ``total_ideas`` projection is bumped by the creation hook
    once the surrounding transaction commits, not here.
    """
    idea = Idea(
        id=idea_id or uuid.uuid4().hex,
        author_id=author_id,
        title=title,
        category=category,
        upvote_count=0,
        voter_ids=[],
        trending_score=0.0,
        created_at=created_at,
        last_activity_at=created_at,
    )
    db.add(idea)
    try:
        db.flush()
    except OperationalError as exc:
        _handle_operational_error(exc, "create_idea")
    logger.info(
        "idea_inserted: id=%s author_id=%s title_len=%d",
        idea.id,
        author_id,
        len(title),
    )
    return idea


def get_by_id(db: Session, idea_id: str) -> Idea:
    """Fetch an Idea by primary key.

    Raises:
        IdeaNotFoundError: If no idea with *idea_id* exists.
    """
    try:
        idea = db.get(Idea, idea_id)
    except OperationalError as exc:
        _log_read_failure(exc, "get_by_id")
        raise
    if idea is None:
        raise IdeaNotFoundError(f"Idea not found: id={idea_id}")
    return idea


DEFAULT_TRENDING_LIMIT = 10


def list_trending(db: Session, *, limit: int = DEFAULT_TRENDING_LIMIT) -> list[Idea]:
    """Return ideas ordered by stored trending score, newest first on ties."""
    try:
        return list(
            db.query(Idea)
            .order_by(Idea.trending_score.desc(), Idea.created_at.desc(), Idea.id)
            .limit(limit)
            .all()
        )
    except OperationalError as exc:
        _log_read_failure(exc, "list_trending")
        raise


def delete_idea(db: Session, idea_id: str) -> None:
    """Permanently delete an Idea and every bookmark pointing at it.

    Raises:
        IdeaNotFoundError: If no idea with *idea_id* exists.
    """
    idea = get_by_id(db, idea_id)
    db.execute(delete(Bookmark).where(Bookmark.idea_id == idea_id))
    db.delete(idea)
    try:
        db.flush()
    except OperationalError as exc:
        _handle_operational_error(exc, "delete_idea")
    logger.info("idea_deleted: id=%s", idea_id)
