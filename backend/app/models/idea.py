"""SQLAlchemy ORM model for the ideas table (record store + vote ledger)."""

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class Idea(Base):
    """An idea with its engagement fields.

    ``voter_ids`` is the vote ledger.  It lives on the same row as
    ``upvote_count`` so membership check and count update are one write.
    ``version`` is the optimistic-concurrency counter: every ORM update is
    issued as ``UPDATE ... WHERE id = :id AND version = :read_version`` and
    raises ``StaleDataError`` if another writer committed first.  Always
    assign a new list to ``voter_ids``; in-place mutation is not tracked.
    """

    __tablename__ = "ideas"
    __table_args__ = (
        Index("ix_ideas_created_at", "created_at"),
        Index("ix_ideas_author_id", "author_id"),
        Index("ix_ideas_trending_score", "trending_score"),
        CheckConstraint("upvote_count >= 0", name="upvote_count_non_negative"),
        CheckConstraint("trending_score >= 0", name="trending_score_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    author_id: Mapped[str] = mapped_column(String(128), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    category: Mapped[str] = mapped_column(
        String(64), nullable=False, default="general", server_default="general",
    )
    upvote_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    voter_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    trending_score: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, server_default="0",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def has_voted(self, user_id: str) -> bool:
        return user_id in (self.voter_ids or [])
