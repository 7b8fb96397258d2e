"""SQLAlchemy ORM model for the per-author statistics projection."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base


class UserStats(Base):
    """Denormalized, eventually-consistent engagement counters for one user.

    ``total_upvotes_received`` is an unclamped running total; clamping
    happens per idea, not here.
    """

    __tablename__ = "user_stats"
    __table_args__ = (
        CheckConstraint("total_ideas >= 0", name="total_ideas_non_negative"),
    )

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    total_ideas: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    total_upvotes_received: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0",
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
