"""Pydantic request/response models for the engagement API.

Wire names are camelCase (``ideaId``, ``trendingScore``) to match the web
client; Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class IdeaRefRequest(_CamelModel):
    """Body carrying a single idea reference.

    ``idea_id`` is optional at the schema level so that a missing value is
    reported as an invalid argument (400) rather than a schema error.
    """

    idea_id: str | None = Field(default=None, alias="ideaId")


class VoteToggleResponse(_CamelModel):
    """Authoritative vote state after a toggle."""

    upvoted: bool
    upvotes: int = Field(ge=0)


class BookmarkToggleResponse(_CamelModel):
    bookmarked: bool


class BookmarkListResponse(_CamelModel):
    idea_ids: list[str] = Field(default_factory=list, alias="ideaIds")


class IdeaCreateRequest(_CamelModel):
    title: str = Field(min_length=3, max_length=300)
    category: str = Field(default="general", min_length=1, max_length=64)


class IdeaView(_CamelModel):
    """Engagement-centric view of an idea."""

    id: str
    author_id: str = Field(alias="authorId")
    title: str
    category: str
    upvotes: int
    upvoted: bool = False
    trending_score: float = Field(alias="trendingScore")
    created_at: datetime = Field(alias="createdAt")
    last_activity_at: datetime = Field(alias="lastActivityAt")


class UserStatsView(_CamelModel):
    user_id: str = Field(alias="userId")
    total_ideas: int = Field(alias="totalIdeas")
    total_upvotes_received: int = Field(alias="totalUpvotesReceived")


class OkResponse(_CamelModel):
    ok: bool = True
