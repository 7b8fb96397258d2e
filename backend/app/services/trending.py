"""Time-decayed trending score for ideas.

Formula
-------
For an idea with ``n`` upvotes created at ``t0``, evaluated at ``now``:

    age_hours = max((now - t0) / 1h, 0)
    trending  = max(n, 0) / (age_hours + 1)

Age is always measured from the idea's immutable creation time, never from
the vote event time.  The score is recomputed from scratch on every write;
it is never adjusted incrementally.
"""

from __future__ import annotations

from datetime import UTC, datetime

_SECONDS_PER_HOUR = 3600.0


def as_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime (naive values are assumed UTC).

    SQLite drops tzinfo on the way back out, so every timestamp read from
    the store passes through here before arithmetic.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


def age_in_hours(created_at: datetime, now: datetime) -> float:
    """Hours elapsed since *created_at*, clamped at zero for clock skew."""
    delta = as_utc(now) - as_utc(created_at)
    return max(delta.total_seconds() / _SECONDS_PER_HOUR, 0.0)


def compute_trending_score(
    upvote_count: int,
    created_at: datetime,
    now: datetime,
) -> float:
    """Compute the trending score; never negative."""
    return max(upvote_count, 0) / (age_in_hours(created_at, now) + 1.0)
