"""POST /api/v1/moderation/ideas/delete — remove an idea (moderator or admin)."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.app.core.errors import normalize_db_error
from backend.app.core.logging import log_event
from backend.app.core.security import CAPABILITY_MODERATE, Principal, require_capability
from backend.app.db.session import get_db
from backend.app.models.engagement import IdeaRefRequest, OkResponse
from backend.app.services.idea_repository import IdeaNotFoundError, delete_idea

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/v1/moderation/ideas/delete", response_model=OkResponse)
def moderate_delete_idea(
    body: IdeaRefRequest,
    principal: Annotated[Principal, Depends(require_capability(CAPABILITY_MODERATE))],
    db: Annotated[Session, Depends(get_db)],
) -> OkResponse:
    if not body.idea_id or not body.idea_id.strip():
        raise HTTPException(status_code=400, detail="ideaId is required")

    correlation_id = str(uuid.uuid4())
    try:
        delete_idea(db, body.idea_id)
        db.commit()
    except IdeaNotFoundError:
        db.rollback()
        raise HTTPException(status_code=404, detail="This idea was removed.")
    except Exception as exc:
        db.rollback()
        error = normalize_db_error(
            exc, operation="moderate_delete_idea", correlation_id=correlation_id,
        )
        raise error.as_http_exception()

    log_event(
        logger, "info", "idea_moderated",
        idea_id=body.idea_id, moderator_id=principal.user_id,
    )
    return OkResponse()
