"""Storage-level trigger fired when an Idea is durably created.

Session events collect ideas inserted by a flush and fire
:func:`on_idea_created` only after the owning transaction commits.  A
rollback discards them.  The hook runs in its own session, so a failure
there never affects the creating transaction; it is logged and dropped.

Delivery is at-least-once from the caller's point of view: re-delivering
the same creation double-increments ``total_ideas``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import event, inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import Session

from backend.app.core.logging import log_event
from backend.app.db.session import session_scope
from backend.app.models.idea import Idea
from backend.app.services.author_stats import increment_total_ideas

logger = logging.getLogger(__name__)

_PENDING_KEY = "ideas_pending_creation"


@dataclass(frozen=True)
class IdeaCreated:
    idea_id: str
    author_id: str


def on_idea_created(bind: Engine | Connection, created: IdeaCreated) -> bool:
    """Bump the author's ``total_ideas``.  Returns False if the update failed."""
    try:
        with session_scope(lambda: Session(bind=bind, expire_on_commit=False)) as db:
            increment_total_ideas(db, created.author_id)
    except Exception as exc:
        log_event(
            logger, "error", "author_stats_update_failed",
            trigger="idea_created",
            idea_id=created.idea_id,
            user_id=created.author_id,
            detail=f"{type(exc).__name__}: {exc}",
        )
        return False
    return True


@event.listens_for(Session, "after_flush")
def _collect_new_ideas(session: Session, _flush_context: object) -> None:
    # Snapshot ids now; attributes may be expired by the time the commit lands.
    created = [
        (obj, IdeaCreated(idea_id=obj.id, author_id=obj.author_id))
        for obj in session.new
        if isinstance(obj, Idea)
    ]
    if created:
        session.info.setdefault(_PENDING_KEY, []).extend(created)


@event.listens_for(Session, "after_commit")
def _fire_idea_created(session: Session) -> None:
    pending: list[tuple[Idea, IdeaCreated]] = session.info.pop(_PENDING_KEY, [])
    if not pending:
        return
    bind = session.get_bind()
    for idea, created in pending:
        # Rolled-back savepoints leave the object transient.
        if not inspect(idea).persistent:
            continue
        log_event(
            logger, "info", "idea_created",
            idea_id=created.idea_id, author_id=created.author_id,
        )
        on_idea_created(bind, created)


@event.listens_for(Session, "after_rollback")
def _discard_pending_ideas(session: Session) -> None:
    session.info.pop(_PENDING_KEY, None)
