"""Per-user idea bookmarks.

The ``(user_id, idea_id)`` unique constraint is the source of truth for
"already bookmarked": two concurrent adds for the same pair cannot both
land, and the loser is reported as bookmarked rather than as an error.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.logging import log_event
from backend.app.models.bookmark import Bookmark
from backend.app.services.idea_repository import get_by_id

logger = logging.getLogger(__name__)


def toggle_bookmark(
    db: Session,
    *,
    user_id: str,
    idea_id: str,
    now: datetime | None = None,
) -> bool:
    """Add or remove the bookmark; return True if the idea is now bookmarked.

    Raises:
        IdeaNotFoundError: If *idea_id* does not exist.
    """
    get_by_id(db, idea_id)

    removed = db.execute(
        delete(Bookmark).where(
            Bookmark.user_id == user_id,
            Bookmark.idea_id == idea_id,
        )
    ).rowcount
    if removed:
        bookmarked = False
    else:
        try:
            with db.begin_nested():
                db.add(
                    Bookmark(
                        user_id=user_id,
                        idea_id=idea_id,
                        created_at=now or datetime.now(UTC),
                    )
                )
        except IntegrityError:
            # A concurrent request created the same bookmark first.
            logger.info(
                "bookmark_already_exists: user_id=%s idea_id=%s", user_id, idea_id,
            )
        bookmarked = True

    log_event(
        logger, "info", "bookmark_toggled",
        user_id=user_id, idea_id=idea_id, bookmarked=bookmarked,
    )
    return bookmarked


def list_bookmarks(db: Session, user_id: str) -> list[str]:
    """Return bookmarked idea ids for *user_id*, most recent first."""
    return list(
        db.scalars(
            select(Bookmark.idea_id)
            .where(Bookmark.user_id == user_id)
            .order_by(Bookmark.created_at.desc(), Bookmark.id.desc())
        ).all()
    )
