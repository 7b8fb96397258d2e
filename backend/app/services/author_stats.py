"""Author statistics projection.

``user_stats`` rows are denormalized counters maintained outside the vote
transaction.  Adjustments are single-statement SQL increments so that two
concurrent adjustments never lose an update; a missing row is created
lazily as a placeholder carrying the first delta.

Operate on a caller-supplied ``Session``; callers own commit/rollback.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.logging import log_event
from backend.app.models.idea import Idea
from backend.app.models.user_stats import UserStats

logger = logging.getLogger(__name__)


def _increment(
    db: Session,
    user_id: str,
    *,
    column: str,
    delta: int,
    now: datetime,
) -> None:
    """Add *delta* to ``user_stats.<column>``, creating the row if absent."""
    col = getattr(UserStats, column)
    stmt = (
        update(UserStats)
        .where(UserStats.user_id == user_id)
        .values({column: col + delta, "updated_at": now})
    )
    if db.execute(stmt).rowcount:
        return

    try:
        with db.begin_nested():
            db.add(UserStats(user_id=user_id, updated_at=now, **{column: delta}))
    except IntegrityError:
        # Lost the insert race; the row exists now, so the increment applies.
        db.execute(stmt)
        logger.info("author_stats_insert_race: user_id=%s column=%s", user_id, column)


def adjust_upvotes_received(
    db: Session,
    user_id: str,
    delta: int,
    *,
    now: datetime | None = None,
) -> None:
    """Add *delta* (+1 / -1) to the author's ``total_upvotes_received``.

    The running total is not clamped; only per-idea counts are.
    """
    _increment(
        db, user_id,
        column="total_upvotes_received",
        delta=delta,
        now=now or datetime.now(UTC),
    )
    log_event(
        logger, "info", "author_stats_updated",
        user_id=user_id, field="total_upvotes_received", delta=delta,
    )


def increment_total_ideas(
    db: Session,
    user_id: str,
    *,
    now: datetime | None = None,
) -> None:
    """Count one more authored idea for *user_id*."""
    _increment(
        db, user_id,
        column="total_ideas",
        delta=1,
        now=now or datetime.now(UTC),
    )
    log_event(
        logger, "info", "author_stats_updated",
        user_id=user_id, field="total_ideas", delta=1,
    )


def get_stats(db: Session, user_id: str) -> UserStats:
    """Return the projection row, or an unsaved zeroed placeholder."""
    stats = db.get(UserStats, user_id)
    if stats is None:
        return UserStats(user_id=user_id, total_ideas=0, total_upvotes_received=0)
    return stats


def reconcile_author_stats(
    db: Session,
    user_id: str,
    *,
    now: datetime | None = None,
) -> UserStats:
    """Rebuild the author's projection from the ideas table.

    This is the out-of-band repair for adjustments that were lost when a
    best-effort update failed.  Both counters are overwritten.
    """
    total_ideas, total_upvotes = db.execute(
        select(
            func.count(Idea.id),
            func.coalesce(func.sum(Idea.upvote_count), 0),
        ).where(Idea.author_id == user_id)
    ).one()

    stats = db.get(UserStats, user_id)
    if stats is None:
        stats = UserStats(user_id=user_id)
        db.add(stats)
    stats.total_ideas = int(total_ideas)
    stats.total_upvotes_received = int(total_upvotes)
    stats.updated_at = now or datetime.now(UTC)
    db.flush()

    logger.info(
        "author_stats_reconciled: user_id=%s total_ideas=%d total_upvotes_received=%d",
        user_id,
        stats.total_ideas,
        stats.total_upvotes_received,
    )
    return stats
