"""Batch refresh of trending scores for recently created ideas.

Called periodically by the scheduler so that scores keep decaying between
votes.  Only ideas created inside the look-back window are refreshed, up
to a per-run cap; older ideas keep their last computed score.

Each idea gets its own single-column ``UPDATE`` whose new value is derived
from the ``upvote_count`` stored at write time, so a vote committing
mid-run can never be overwritten with a score from a stale count.  The
job never reads-modifies-writes ``upvote_count`` or ``voter_ids`` and does
not bump the row ``version``, so it never conflicts with vote toggles.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import Float, cast, select, update
from sqlalchemy.orm import Session

from backend.app.core.logging import log_event
from backend.app.models.idea import Idea
from backend.app.services.trending import age_in_hours

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_HOURS = 72
DEFAULT_BATCH_LIMIT = 500


def recompute_trending_scores(
    db: Session,
    *,
    now: datetime,
    window_hours: int = DEFAULT_WINDOW_HOURS,
    limit: int = DEFAULT_BATCH_LIMIT,
) -> int:
    """Refresh ``trending_score`` for ideas created within *window_hours*.

    Newest ideas are processed first and at most *limit* are touched.
    Returns the number of ideas refreshed.  The caller commits; a run that
    fails midway can simply be repeated on the next tick.
    """
    cutoff = now - timedelta(hours=window_hours)
    rows = db.execute(
        select(Idea.id, Idea.created_at)
        .where(Idea.created_at >= cutoff)
        .order_by(Idea.created_at.desc(), Idea.id)
        .limit(limit)
    ).all()

    for idea_id, created_at in rows:
        decay = age_in_hours(created_at, now) + 1.0
        db.execute(
            update(Idea)
            .where(Idea.id == idea_id)
            .values(trending_score=cast(Idea.upvote_count, Float) / decay)
            .execution_options(synchronize_session=False)
        )

    log_event(
        logger, "info", "trending_recompute_complete",
        refreshed=len(rows),
        window_hours=window_hours,
        limit=limit,
    )
    return len(rows)
