"""Centralized error normalization for user-facing messages.

Routes translate storage and transaction failures through this module, so
every error response carries a short user message, an ``error_category``
and a ``retryable`` flag.  Raw exception text is logged, never returned.
"""

import logging
from dataclasses import dataclass

from fastapi import HTTPException

from backend.app.core.logging import log_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedError:
    """Standardized error representation for API responses."""

    user_message: str
    error_category: str
    retryable: bool
    http_status: int = 500

    def as_http_exception(self) -> HTTPException:
        return HTTPException(status_code=self.http_status, detail=self.user_message)


_DB_BUSY = NormalizedError(
    user_message="The idea board is busy right now. Please try again in a moment.",
    error_category="db",
    retryable=True,
    http_status=503,
)
_DB_NOT_WRITABLE = NormalizedError(
    user_message=(
        "The database rejected the write (permission or read-only file). "
        "Check APP_DB_PATH points to a writable location."
    ),
    error_category="db",
    retryable=False,
)
_DB_GENERIC = NormalizedError(
    user_message="Saving your change failed. Please try again.",
    error_category="db",
    retryable=True,
)
_VOTE_CONFLICT = NormalizedError(
    user_message="Too many people are voting on this idea right now. Please try again.",
    error_category="conflict",
    retryable=True,
    http_status=409,
)
_UNKNOWN = NormalizedError(
    user_message="An unexpected error occurred. Please try again.",
    error_category="unknown",
    retryable=False,
)


def _classify_db_error(exc: Exception) -> NormalizedError:
    text = str(exc).lower()
    if "locked" in text or "busy" in text:
        return _DB_BUSY
    if any(marker in text for marker in ("readonly", "read-only", "permission")):
        return _DB_NOT_WRITABLE
    return _DB_GENERIC


def normalize_db_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    """Map a storage failure to a user message and log the raw cause."""
    error = _classify_db_error(exc)
    log_event(
        logger, "error", "db_write_failed",
        operation=operation,
        error_category=error.error_category,
        retryable=error.retryable,
        correlation_id=correlation_id or "N/A",
        detail=str(exc),
    )
    return error


def normalize_conflict_error(
    *,
    operation: str,
    attempts: int,
    correlation_id: str | None = None,
) -> NormalizedError:
    """A vote that lost every optimistic-concurrency retry.  Nothing was written."""
    log_event(
        logger, "warning", "db_write_failed",
        operation=operation,
        attempts=attempts,
        error_category=_VOTE_CONFLICT.error_category,
        correlation_id=correlation_id or "N/A",
    )
    return _VOTE_CONFLICT


def normalize_unknown_error(
    exc: Exception,
    *,
    operation: str,
    correlation_id: str | None = None,
) -> NormalizedError:
    log_event(
        logger, "exception", "unknown_error",
        operation=operation,
        error_category=_UNKNOWN.error_category,
        correlation_id=correlation_id or "N/A",
        detail=f"{type(exc).__name__}: {exc}",
    )
    return _UNKNOWN
