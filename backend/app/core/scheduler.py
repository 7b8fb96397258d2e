"""Lightweight repeating-job scheduler using stdlib threading.

Runs a callable at a fixed interval in a daemon thread.  Exceptions in the
job are logged but never propagate; a failed run is simply retried on the
next tick and no state carries over between runs.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from backend.app.core.settings import settings
from backend.app.db.session import SessionFactory, SessionLocal, session_scope
from backend.app.services.trending import utc_now
from backend.app.services.trending_recompute import recompute_trending_scores

logger = logging.getLogger(__name__)


class RepeatingJob:
    """Execute *func* every *interval_seconds* in a background daemon thread."""

    def __init__(self, func: Callable[[], object], interval_seconds: float) -> None:
        self._func = func
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._timer: threading.Timer | None = None

    @property
    def name(self) -> str:
        return getattr(self._func, "__name__", repr(self._func))

    def _run(self) -> None:
        if self._stop_event.is_set():
            return
        try:
            self._func()
        except Exception:
            logger.exception("repeating_job_error: job=%s", self.name)
        # Schedule next run regardless of success/failure
        self._schedule()

    def _schedule(self) -> None:
        if self._stop_event.is_set():
            return
        self._timer = threading.Timer(self._interval, self._run)
        self._timer.daemon = True
        self._timer.start()

    def start(self) -> None:
        """Start the repeating job (first execution after one interval)."""
        logger.info(
            "repeating_job_started: job=%s interval=%ss",
            self.name,
            self._interval,
        )
        self._stop_event.clear()
        self._schedule()

    def stop(self) -> None:
        """Signal the job to stop and cancel any pending timer."""
        self._stop_event.set()
        if self._timer is not None:
            self._timer.cancel()
        logger.info("repeating_job_stopped: job=%s", self.name)


# ---------------------------------------------------------------------------
# Trending recompute entry point and module-level scheduler instance
# ---------------------------------------------------------------------------

_trending_job: RepeatingJob | None = None


def run_trending_recompute(factory: SessionFactory = SessionLocal) -> int:
    """Open a session, refresh recent trending scores, commit, and close.

    Shared by the in-process scheduler and the HTTP trigger used by external
    schedulers.
    """
    with session_scope(factory) as db:
        return recompute_trending_scores(
            db,
            now=utc_now(),
            window_hours=settings.trending_window_hours,
            limit=settings.trending_batch_limit,
        )


def start_trending_recompute_scheduler(interval_seconds: int) -> None:
    """Start the background trending recompute job."""
    global _trending_job  # noqa: PLW0603
    if _trending_job is not None:
        _trending_job.stop()
    _trending_job = RepeatingJob(run_trending_recompute, interval_seconds)
    _trending_job.start()


def stop_trending_recompute_scheduler() -> None:
    """Stop the background trending recompute job if running."""
    global _trending_job  # noqa: PLW0603
    if _trending_job is not None:
        _trending_job.stop()
        _trending_job = None
