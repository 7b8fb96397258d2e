"""POST /api/v1/jobs/recompute-trending — trigger for external schedulers.

Fire-and-forget: the caller only learns that the run was accepted; the
outcome is visible in logs (``trending_recompute_complete`` or
``repeating_job_error``).
"""

import logging
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, Response

from backend.app.core.scheduler import run_trending_recompute
from backend.app.core.security import CAPABILITY_ADMIN, Principal, require_capability
from backend.app.db.session import SessionFactory, get_session_factory

logger = logging.getLogger(__name__)

router = APIRouter()


def _run_logged(factory: SessionFactory) -> None:
    try:
        run_trending_recompute(factory)
    except Exception:
        logger.exception("repeating_job_error: job=run_trending_recompute trigger=http")


@router.post("/api/v1/jobs/recompute-trending", status_code=204)
def trigger_recompute(
    background: BackgroundTasks,
    _principal: Annotated[Principal, Depends(require_capability(CAPABILITY_ADMIN))],
    factory: Annotated[SessionFactory, Depends(get_session_factory)],
) -> Response:
    background.add_task(_run_logged, factory)
    return Response(status_code=204)
