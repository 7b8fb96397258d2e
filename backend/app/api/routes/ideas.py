"""Idea endpoints: create, fetch engagement view, list trending, author stats."""

import logging
import uuid
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from backend.app.core.errors import normalize_db_error
from backend.app.core.security import CurrentPrincipal
from backend.app.db.session import get_db
from backend.app.models.engagement import IdeaCreateRequest, IdeaView, UserStatsView
from backend.app.models.idea import Idea
from backend.app.services.author_stats import get_stats
from backend.app.services.idea_repository import (
    DEFAULT_TRENDING_LIMIT,
    IdeaNotFoundError,
    create_idea,
    get_by_id,
    list_trending,
)

logger = logging.getLogger(__name__)

router = APIRouter()

SessionDep = Annotated[Session, Depends(get_db)]


def _to_view(idea: Idea, viewer_id: str | None = None) -> IdeaView:
    return IdeaView(
        id=idea.id,
        author_id=idea.author_id,
        title=idea.title,
        category=idea.category,
        upvotes=idea.upvote_count,
        upvoted=bool(viewer_id) and idea.has_voted(viewer_id),
        trending_score=idea.trending_score,
        created_at=idea.created_at,
        last_activity_at=idea.last_activity_at,
    )


@router.post("/api/v1/ideas", response_model=IdeaView, status_code=201)
def submit_idea(
    body: IdeaCreateRequest,
    principal: CurrentPrincipal,
    db: SessionDep,
) -> IdeaView:
    """Create an idea authored by the caller."""
    correlation_id = str(uuid.uuid4())
    try:
        idea = create_idea(
            db,
            author_id=principal.user_id,
            title=body.title,
            category=body.category,
            created_at=datetime.now(UTC),
        )
        db.commit()
    except Exception as exc:
        db.rollback()
        error = normalize_db_error(
            exc, operation="create_idea", correlation_id=correlation_id,
        )
        raise error.as_http_exception()
    return _to_view(idea, principal.user_id)


@router.get("/api/v1/ideas/trending", response_model=list[IdeaView])
def trending_ideas(
    db: SessionDep,
    limit: Annotated[int, Query(ge=1, le=100)] = DEFAULT_TRENDING_LIMIT,
) -> list[IdeaView]:
    return [_to_view(idea) for idea in list_trending(db, limit=limit)]


@router.get("/api/v1/ideas/{idea_id}", response_model=IdeaView)
def get_idea(idea_id: str, principal: CurrentPrincipal, db: SessionDep) -> IdeaView:
    """Engagement view of one idea, including whether the caller has upvoted it."""
    try:
        idea = get_by_id(db, idea_id)
    except IdeaNotFoundError:
        raise HTTPException(status_code=404, detail="This idea was removed.")
    return _to_view(idea, principal.user_id)


@router.get("/api/v1/users/{user_id}/stats", response_model=UserStatsView)
def user_stats(user_id: str, db: SessionDep) -> UserStatsView:
    stats = get_stats(db, user_id)
    return UserStatsView(
        user_id=stats.user_id,
        total_ideas=stats.total_ideas,
        total_upvotes_received=stats.total_upvotes_received,
    )
