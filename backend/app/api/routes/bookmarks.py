"""Bookmark endpoints for the signed-in user."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.core.errors import normalize_db_error
from backend.app.core.security import CurrentPrincipal
from backend.app.db.session import get_db
from backend.app.models.engagement import (
    BookmarkListResponse,
    BookmarkToggleResponse,
    IdeaRefRequest,
)
from backend.app.services.bookmarks import list_bookmarks, toggle_bookmark
from backend.app.services.idea_repository import IdeaNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/bookmarks/toggle", response_model=BookmarkToggleResponse)
def toggle(
    body: IdeaRefRequest,
    principal: CurrentPrincipal,
    db: Annotated[Session, Depends(get_db)],
) -> BookmarkToggleResponse:
    if not body.idea_id or not body.idea_id.strip():
        raise HTTPException(status_code=400, detail="ideaId is required")

    correlation_id = str(uuid.uuid4())
    try:
        bookmarked = toggle_bookmark(db, user_id=principal.user_id, idea_id=body.idea_id)
        db.commit()
    except IdeaNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="This idea was removed.")
    except Exception as exc:
        db.rollback()
        error = normalize_db_error(
            exc, operation="toggle_bookmark", correlation_id=correlation_id,
        )
        raise error.as_http_exception()
    return BookmarkToggleResponse(bookmarked=bookmarked)


@router.get("/api/v1/bookmarks", response_model=BookmarkListResponse)
def list_mine(
    principal: CurrentPrincipal,
    db: Annotated[Session, Depends(get_db)],
) -> BookmarkListResponse:
    return BookmarkListResponse(idea_ids=list_bookmarks(db, principal.user_id))
