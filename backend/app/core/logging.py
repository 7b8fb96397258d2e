"""Structured logging: one root handler and a fixed event vocabulary.

Every operational log line starts with a canonical event name followed by
``key=value`` pairs, e.g.::

    vote_toggled: idea_id=3f2a user_id=u1 upvoted=True upvotes=4

Lifecycle events: ``app_start``, ``config_loaded``, ``db_initialized`` and
the ``db_migration_*`` trio.  Storage failures: ``db_write_failed`` and
``db_read_failed``.  Engagement events are listed in :data:`EVENTS`.

Never log bearer tokens, the JWT secret or idea titles; log ids, counts
and lengths.
"""

import logging
import sys

EVENT_APP_START = "app_start"
EVENT_CONFIG_LOADED = "config_loaded"
EVENT_DB_INITIALIZED = "db_initialized"
EVENT_DB_MIGRATION_STARTED = "db_migration_started"
EVENT_DB_MIGRATION_SUCCEEDED = "db_migration_succeeded"
EVENT_DB_MIGRATION_FAILED = "db_migration_failed"
EVENT_DB_WRITE_FAILED = "db_write_failed"
EVENT_DB_READ_FAILED = "db_read_failed"

# Engagement
EVENT_IDEA_CREATED = "idea_created"
EVENT_IDEA_MODERATED = "idea_moderated"
EVENT_VOTE_TOGGLED = "vote_toggled"
EVENT_VOTE_CONFLICT_RETRY = "vote_conflict_retry"
EVENT_VOTE_ABORTED = "vote_aborted"
EVENT_AUTHOR_STATS_UPDATED = "author_stats_updated"
EVENT_AUTHOR_STATS_UPDATE_FAILED = "author_stats_update_failed"
EVENT_BOOKMARK_TOGGLED = "bookmark_toggled"
EVENT_TRENDING_RECOMPUTE_COMPLETE = "trending_recompute_complete"

EVENTS = frozenset({
    EVENT_APP_START,
    EVENT_CONFIG_LOADED,
    EVENT_DB_INITIALIZED,
    EVENT_DB_MIGRATION_STARTED,
    EVENT_DB_MIGRATION_SUCCEEDED,
    EVENT_DB_MIGRATION_FAILED,
    EVENT_DB_WRITE_FAILED,
    EVENT_DB_READ_FAILED,
    EVENT_IDEA_CREATED,
    EVENT_IDEA_MODERATED,
    EVENT_VOTE_TOGGLED,
    EVENT_VOTE_CONFLICT_RETRY,
    EVENT_VOTE_ABORTED,
    EVENT_AUTHOR_STATS_UPDATED,
    EVENT_AUTHOR_STATS_UPDATE_FAILED,
    EVENT_BOOKMARK_TOGGLED,
    EVENT_TRENDING_RECOMPUTE_COMPLETE,
})

_HANDLER_ATTR = "_idea_engagement"
_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = logging.INFO) -> None:
    """Attach the stdout handler to the root logger (idempotent).

    Alembic's ``fileConfig()`` can drop root handlers, so this is called
    again after migrations; a second call only adjusts the level.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(level))

    if any(getattr(h, _HANDLER_ATTR, False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def log_event(
    logger: logging.Logger,
    level: str,
    event_name: str,
    **kwargs: object,
) -> None:
    """Emit ``event_name: k1=v1 k2=v2`` at *level*.

    *level* is a logger method name (``"info"``, ``"warning"``, ``"error"``
    or ``"exception"``); anything else logs at INFO.
    """
    fields = " ".join(f"{k}={v}" for k, v in kwargs.items())
    message = f"{event_name}: {fields}" if fields else event_name
    getattr(logger, level, logger.info)(message)
