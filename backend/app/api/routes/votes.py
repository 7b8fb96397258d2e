"""POST /api/v1/votes/toggle — authoritative upvote toggle.

Caller identity comes from the bearer token, never from the payload.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from backend.app.core.errors import normalize_conflict_error, normalize_db_error
from backend.app.core.security import CAPABILITY_VOTE, Principal, require_capability
from backend.app.core.settings import settings
from backend.app.db.session import SessionFactory, get_session_factory
from backend.app.models.engagement import IdeaRefRequest, VoteToggleResponse
from backend.app.services.idea_repository import IdeaNotFoundError
from backend.app.services.vote_engine import (
    InvalidArgumentError,
    UnauthenticatedError,
    VoteAbortedError,
    VoteEngine,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_vote_engine(
    factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> VoteEngine:
    return VoteEngine(
        factory,
        max_attempts=settings.vote_max_attempts,
        retry_backoff_seconds=settings.vote_retry_backoff_seconds,
    )


@router.post("/api/v1/votes/toggle", response_model=VoteToggleResponse)
def toggle_vote(
    body: IdeaRefRequest,
    principal: Annotated[Principal, Depends(require_capability(CAPABILITY_VOTE))],
    engine: Annotated[VoteEngine, Depends(get_vote_engine)],
) -> VoteToggleResponse:
    """Toggle the caller's upvote and return the committed state."""
    correlation_id = str(uuid.uuid4())

    try:
        result = engine.toggle_vote(body.idea_id, principal.user_id)
    except UnauthenticatedError:
        raise HTTPException(status_code=401, detail="Please sign in to continue.")
    except InvalidArgumentError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IdeaNotFoundError:
        raise HTTPException(status_code=404, detail="This idea was removed.")
    except VoteAbortedError as exc:
        error = normalize_conflict_error(
            operation="toggle_vote",
            attempts=exc.attempts,
            correlation_id=correlation_id,
        )
        raise error.as_http_exception()
    except Exception as exc:
        error = normalize_db_error(
            exc, operation="toggle_vote", correlation_id=correlation_id,
        )
        raise error.as_http_exception()

    return VoteToggleResponse(upvoted=result.upvoted, upvotes=result.upvotes)
