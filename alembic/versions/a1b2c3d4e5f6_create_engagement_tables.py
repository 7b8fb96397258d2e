"""create ideas, user_stats and bookmarks tables

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-12 09:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "ideas",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("author_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("category", sa.String(length=64), nullable=False, server_default="general"),
        sa.Column("upvote_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("voter_ids", sa.JSON(), nullable=False),
        sa.Column("trending_score", sa.Float(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_activity_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.CheckConstraint("upvote_count >= 0", name=op.f("ck_ideas_upvote_count_non_negative")),
        sa.CheckConstraint(
            "trending_score >= 0", name=op.f("ck_ideas_trending_score_non_negative"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_ideas")),
    )
    op.create_index("ix_ideas_created_at", "ideas", ["created_at"])
    op.create_index("ix_ideas_author_id", "ideas", ["author_id"])
    op.create_index("ix_ideas_trending_score", "ideas", ["trending_score"])

    op.create_table(
        "user_stats",
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("total_ideas", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_upvotes_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "total_ideas >= 0", name=op.f("ck_user_stats_total_ideas_non_negative"),
        ),
        sa.PrimaryKeyConstraint("user_id", name=op.f("pk_user_stats")),
    )

    op.create_table(
        "bookmarks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("idea_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["idea_id"], ["ideas.id"],
            name=op.f("fk_bookmarks_idea_id_ideas"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_bookmarks")),
        sa.UniqueConstraint("user_id", "idea_id", name="uq_bookmarks_user_idea"),
    )
    op.create_index("ix_bookmarks_user_id", "bookmarks", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_bookmarks_user_id", table_name="bookmarks")
    op.drop_table("bookmarks")
    op.drop_table("user_stats")
    op.drop_index("ix_ideas_trending_score", table_name="ideas")
    op.drop_index("ix_ideas_author_id", table_name="ideas")
    op.drop_index("ix_ideas_created_at", table_name="ideas")
    op.drop_table("ideas")
