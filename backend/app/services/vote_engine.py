"""Engagement transaction engine: the authoritative vote toggle.

One toggle is one ORM transaction over a single ``ideas`` row:

1. read ``voter_ids`` / ``upvote_count`` (``SELECT ... FOR UPDATE`` where
   the backend supports it),
2. flip the caller's membership and derive the new count (clamped at 0),
3. recompute ``trending_score`` from scratch against ``created_at``,
4. write ledger, count, score and ``last_activity_at`` and commit.

The row's ``version`` column makes the write conditional on nothing else
having committed since step 1.  A lost race (``StaleDataError``) or a
locked database rolls the whole attempt back and retries; nothing from a
failed attempt is ever visible.  After ``max_attempts`` the toggle fails
with :class:`VoteAbortedError` and the caller must assume no change.

The author's ``total_upvotes_received`` is adjusted afterwards in a
separate transaction.  That step is best-effort: a failure is logged and
reported via ``author_stats_applied=False`` but never undoes the vote.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from backend.app.core.logging import log_event
from backend.app.db.session import SessionFactory, session_scope
from backend.app.models.idea import Idea
from backend.app.services.author_stats import adjust_upvotes_received
from backend.app.services.idea_repository import (
    DatabaseLockedError,
    IdeaNotFoundError,
    is_locked_error,
)
from backend.app.services.trending import compute_trending_score, utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_BACKOFF_SECONDS = 0.01


class UnauthenticatedError(Exception):
    """Raised when a toggle is attempted without a caller identity."""


class InvalidArgumentError(ValueError):
    """Raised when the idea identifier is missing or blank."""


class VoteAbortedError(Exception):
    """Raised when the vote transaction could not commit within its retry budget."""

    def __init__(self, idea_id: str, attempts: int) -> None:
        super().__init__(
            f"Vote on idea {idea_id} aborted after {attempts} conflicting attempts"
        )
        self.idea_id = idea_id
        self.attempts = attempts


class _Conflict(Exception):
    """Internal marker for a retryable attempt failure."""


@dataclass(frozen=True)
class VoteToggleResult:
    """Authoritative outcome of a committed toggle."""

    upvoted: bool
    upvotes: int
    author_stats_applied: bool = True


@dataclass(frozen=True)
class _CommittedVote:
    author_id: str
    upvoted: bool
    upvotes: int
    trending_score: float


class VoteEngine:
    """Executes vote toggles against the idea store.

    *session_factory* opens a fresh ``Session`` per attempt; *clock* is
    injected so trending scores are deterministic under test.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        clock: Clock = utc_now,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._session_factory = session_factory
        self._clock = clock
        self._max_attempts = max_attempts
        self._retry_backoff = retry_backoff_seconds
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def toggle_vote(self, idea_id: str | None, user_id: str | None) -> VoteToggleResult:
        """Flip *user_id*'s upvote on *idea_id* and return the new state.

        Raises:
            UnauthenticatedError: *user_id* is missing.
            InvalidArgumentError: *idea_id* is missing or blank.
            IdeaNotFoundError: the idea does not exist.
            VoteAbortedError: the retry budget was exhausted.
        """
        if not user_id:
            raise UnauthenticatedError("A signed-in user is required to vote")
        if idea_id is None or not idea_id.strip():
            raise InvalidArgumentError("ideaId is required")

        committed = self._commit_with_retry(idea_id, user_id)
        applied = self.adjust_author_stats(
            committed.author_id,
            1 if committed.upvoted else -1,
            idea_id=idea_id,
        )

        log_event(
            logger, "info", "vote_toggled",
            idea_id=idea_id,
            user_id=user_id,
            upvoted=committed.upvoted,
            upvotes=committed.upvotes,
            trending_score=f"{committed.trending_score:.4f}",
            author_stats_applied=applied,
        )
        return VoteToggleResult(
            upvoted=committed.upvoted,
            upvotes=committed.upvotes,
            author_stats_applied=applied,
        )

    def adjust_author_stats(
        self,
        author_id: str,
        delta: int,
        *,
        idea_id: str | None = None,
    ) -> bool:
        """Best-effort projection update.  Returns False (and logs) on failure.

        Also the retry entry point for an adjustment that previously failed.
        """
        try:
            with session_scope(self._session_factory) as db:
                adjust_upvotes_received(db, author_id, delta, now=self._clock())
        except Exception as exc:
            log_event(
                logger, "error", "author_stats_update_failed",
                trigger="vote",
                idea_id=idea_id or "N/A",
                user_id=author_id,
                delta=delta,
                detail=f"{type(exc).__name__}: {exc}",
            )
            return False
        return True

    # ------------------------------------------------------------------
    # Transaction body
    # ------------------------------------------------------------------

    def _commit_with_retry(self, idea_id: str, user_id: str) -> _CommittedVote:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return self._toggle_once(idea_id, user_id)
            except _Conflict as conflict:
                if attempt == self._max_attempts:
                    break
                log_event(
                    logger, "warning", "vote_conflict_retry",
                    idea_id=idea_id,
                    attempt=attempt,
                    reason=str(conflict),
                )
                self._backoff(attempt)

        log_event(
            logger, "warning", "vote_aborted",
            idea_id=idea_id, user_id=user_id, attempts=self._max_attempts,
        )
        raise VoteAbortedError(idea_id, self._max_attempts)

    def _backoff(self, attempt: int) -> None:
        if self._retry_backoff <= 0:
            return
        # Linear backoff with jitter.
        self._sleep(self._retry_backoff * attempt * random.uniform(0.5, 1.5))

    def _toggle_once(self, idea_id: str, user_id: str) -> _CommittedVote:
        try:
            with session_scope(self._session_factory) as db:
                idea = db.execute(
                    select(Idea).where(Idea.id == idea_id).with_for_update()
                ).scalar_one_or_none()
                if idea is None:
                    raise IdeaNotFoundError(f"Idea not found: id={idea_id}")

                now = self._clock()
                voters = list(idea.voter_ids or [])
                had_voted = user_id in voters
                if had_voted:
                    voters = [v for v in voters if v != user_id]
                    new_count = max(0, idea.upvote_count - 1)
                else:
                    voters.append(user_id)
                    new_count = idea.upvote_count + 1

                idea.voter_ids = voters
                idea.upvote_count = new_count
                idea.trending_score = compute_trending_score(
                    new_count, idea.created_at, now,
                )
                idea.last_activity_at = now
                committed = _CommittedVote(
                    author_id=idea.author_id,
                    upvoted=not had_voted,
                    upvotes=new_count,
                    trending_score=idea.trending_score,
                )
        except StaleDataError as exc:
            raise _Conflict("concurrent_update") from exc
        except DatabaseLockedError as exc:
            raise _Conflict("database_locked") from exc
        except OperationalError as exc:
            if is_locked_error(exc):
                raise _Conflict("database_locked") from exc
            raise
        return committed
