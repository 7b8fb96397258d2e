"""Tests for the author statistics projection and the idea creation hook."""

from unittest.mock import patch

import pytest
from backend.app.models.user_stats import UserStats
from backend.app.services.author_stats import (
    adjust_upvotes_received,
    get_stats,
    increment_total_ideas,
    reconcile_author_stats,
)
from backend.app.services.idea_events import IdeaCreated, on_idea_created
from backend.app.services.idea_repository import create_idea
from backend.app.services.vote_engine import VoteEngine
from conftest import FakeClock
from sqlalchemy import update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker


def _stats(session_factory: sessionmaker[Session], user_id: str) -> UserStats:
    with session_factory() as fresh:
        return get_stats(fresh, user_id)


# ---------------------------------------------------------------------------
# Increments and placeholders
# ---------------------------------------------------------------------------


class TestAdjustUpvotesReceived:
    def test_missing_row_created_as_placeholder(self, db: Session, clock: FakeClock) -> None:
        adjust_upvotes_received(db, "author-1", 1, now=clock.now)
        db.commit()

        row = db.get(UserStats, "author-1")
        assert row is not None
        assert row.total_upvotes_received == 1
        assert row.total_ideas == 0

    def test_increments_accumulate(self, db: Session, clock: FakeClock) -> None:
        for _ in range(3):
            adjust_upvotes_received(db, "author-1", 1, now=clock.now)
        adjust_upvotes_received(db, "author-1", -1, now=clock.now)
        db.commit()

        assert db.get(UserStats, "author-1").total_upvotes_received == 2

    def test_running_total_may_go_negative(self, db: Session, clock: FakeClock) -> None:
        adjust_upvotes_received(db, "author-1", -1, now=clock.now)
        db.commit()
        assert db.get(UserStats, "author-1").total_upvotes_received == -1

    def test_updated_at_recorded(self, db: Session, clock: FakeClock) -> None:
        adjust_upvotes_received(db, "author-1", 1, now=clock.now)
        db.commit()
        row = db.get(UserStats, "author-1")
        assert row.updated_at.replace(tzinfo=None) == clock.now.replace(tzinfo=None)

    def test_logs_update(
        self, db: Session, clock: FakeClock, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level("INFO"):
            adjust_upvotes_received(db, "author-1", 1, now=clock.now)
        assert "author_stats_updated" in caplog.text
        assert "field=total_upvotes_received" in caplog.text


class TestGetStats:
    def test_unknown_user_gets_zeroed_placeholder(self, db: Session) -> None:
        stats = get_stats(db, "nobody")
        assert stats.user_id == "nobody"
        assert stats.total_ideas == 0
        assert stats.total_upvotes_received == 0
        assert db.get(UserStats, "nobody") is None

    def test_increment_total_ideas(self, db: Session, clock: FakeClock) -> None:
        increment_total_ideas(db, "author-1", now=clock.now)
        increment_total_ideas(db, "author-1", now=clock.now)
        db.commit()
        assert get_stats(db, "author-1").total_ideas == 2


# ---------------------------------------------------------------------------
# Creation hook
# ---------------------------------------------------------------------------


class TestIdeaCreationHook:
    def test_total_ideas_incremented_after_commit(
        self, db: Session, clock: FakeClock, session_factory: sessionmaker[Session],
    ) -> None:
        create_idea(db, author_id="author-1", title="First idea", created_at=clock.now)
        assert get_stats(db, "author-1").total_ideas == 0

        db.commit()

        assert _stats(session_factory, "author-1").total_ideas == 1

    def test_multiple_ideas_in_one_transaction(
        self, db: Session, clock: FakeClock, session_factory: sessionmaker[Session],
    ) -> None:
        create_idea(db, author_id="author-1", title="Idea one", created_at=clock.now)
        create_idea(db, author_id="author-1", title="Idea two", created_at=clock.now)
        create_idea(db, author_id="author-2", title="Idea three", created_at=clock.now)
        db.commit()

        assert _stats(session_factory, "author-1").total_ideas == 2
        assert _stats(session_factory, "author-2").total_ideas == 1

    def test_not_fired_on_rollback(
        self, db: Session, clock: FakeClock, session_factory: sessionmaker[Session],
    ) -> None:
        create_idea(db, author_id="author-1", title="Abandoned", created_at=clock.now)
        db.rollback()

        create_idea(db, author_id="author-2", title="Kept", created_at=clock.now)
        db.commit()

        assert _stats(session_factory, "author-1").total_ideas == 0
        assert _stats(session_factory, "author-2").total_ideas == 1

    def test_hook_failure_does_not_undo_creation(
        self,
        db: Session,
        clock: FakeClock,
        session_factory: sessionmaker[Session],
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        with patch(
            "backend.app.services.idea_events.increment_total_ideas",
            side_effect=OperationalError("UPDATE user_stats", {}, Exception("disk full")),
        ):
            idea = create_idea(db, author_id="author-1", title="Survives", created_at=clock.now)
            db.commit()

        assert "author_stats_update_failed" in caplog.text
        assert "trigger=idea_created" in caplog.text
        with session_factory() as fresh:
            from backend.app.models.idea import Idea

            assert fresh.get(Idea, idea.id) is not None
        assert _stats(session_factory, "author-1").total_ideas == 0

    def test_on_idea_created_reports_success(
        self, engine: Engine, session_factory: sessionmaker[Session],
    ) -> None:
        assert on_idea_created(engine, IdeaCreated(idea_id="x", author_id="author-7")) is True
        assert _stats(session_factory, "author-7").total_ideas == 1

    def test_redelivery_double_counts(
        self, engine: Engine, session_factory: sessionmaker[Session],
    ) -> None:
        created = IdeaCreated(idea_id="x", author_id="author-7")
        on_idea_created(engine, created)
        on_idea_created(engine, created)
        assert _stats(session_factory, "author-7").total_ideas == 2


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


class TestReconcile:
    def test_rebuilds_drifted_projection(
        self, db: Session, clock: FakeClock, session_factory: sessionmaker[Session],
    ) -> None:
        first = create_idea(db, author_id="author-1", title="Alpha", created_at=clock.now)
        second = create_idea(db, author_id="author-1", title="Beta", created_at=clock.now)
        db.commit()

        engine = VoteEngine(session_factory, clock=clock, retry_backoff_seconds=0)
        engine.toggle_vote(first.id, "user-a")
        engine.toggle_vote(first.id, "user-b")
        engine.toggle_vote(second.id, "user-a")

        db.execute(
            update(UserStats)
            .where(UserStats.user_id == "author-1")
            .values(total_ideas=0, total_upvotes_received=-4)
        )
        db.commit()

        stats = reconcile_author_stats(db, "author-1", now=clock.now)
        db.commit()

        assert stats.total_ideas == 2
        assert stats.total_upvotes_received == 3
        assert _stats(session_factory, "author-1").total_upvotes_received == 3

    def test_creates_row_for_unknown_author(self, db: Session, clock: FakeClock) -> None:
        stats = reconcile_author_stats(db, "ghost", now=clock.now)
        db.commit()
        assert stats.total_ideas == 0
        assert stats.total_upvotes_received == 0
        assert db.get(UserStats, "ghost") is not None

    def test_self_votes_are_counted(
        self, db: Session, clock: FakeClock, session_factory: sessionmaker[Session],
    ) -> None:
        idea = create_idea(db, author_id="author-1", title="Own idea", created_at=clock.now)
        db.commit()

        VoteEngine(session_factory, clock=clock).toggle_vote(idea.id, "author-1")

        incremental = _stats(session_factory, "author-1").total_upvotes_received
        with session_factory() as fresh:
            rebuilt = reconcile_author_stats(fresh, "author-1", now=clock.now)
            fresh.commit()
            assert rebuilt.total_upvotes_received == incremental == 1
