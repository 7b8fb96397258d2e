"""Client-side vote toggling with optimistic update and reconciliation.

The controller flips the locally cached state immediately to hide latency,
then:

- on success, overwrites count and membership with the server's
  authoritative answer (other users may have voted in the meantime);
- on any failure, restores the exact snapshot captured before the flip,
  rather than flipping back, since the local state may have moved on.

Notifications go through an injected :class:`Notifier` instead of a global
toast service.
"""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from backend.app.models.engagement import VoteToggleResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class Notifier(Protocol):
    """Transient user-facing messages (toasts)."""

    def success(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class VoteRequestError(Exception):
    """The toggle request did not produce an authoritative result."""

    def __init__(self, detail: str, *, status_code: int | None, retryable: bool) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code
        self.retryable = retryable


def _safe_error_detail(resp: httpx.Response) -> str:
    """Extract a user-friendly error message from an API response.

    Never exposes raw stack traces or secrets.
    """
    try:
        body = resp.json()
        detail = body.get("detail", "")
        if isinstance(detail, list):
            return "; ".join(str(d) for d in detail)
        return str(detail)
    except Exception:
        return f"Unexpected error (HTTP {resp.status_code}). Please try again."


class VoteApiClient:
    """Thin HTTP client for the vote toggle endpoint."""

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        http: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self._token = token

    def toggle_vote(self, idea_id: str) -> VoteToggleResponse:
        try:
            resp = self._http.post(
                "/api/v1/votes/toggle",
                json={"ideaId": idea_id},
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as exc:
            raise VoteRequestError(
                "Could not reach the server. Please try again.",
                status_code=None,
                retryable=True,
            ) from exc

        if resp.status_code != 200:
            raise VoteRequestError(
                _safe_error_detail(resp),
                status_code=resp.status_code,
                retryable=resp.status_code in (409, 503) or resp.status_code >= 500,
            )
        try:
            return VoteToggleResponse.model_validate(resp.json())
        except ValueError as exc:
            # JSON decode and pydantic ValidationError are both ValueErrors.
            raise VoteRequestError(
                "The server sent an unreadable response. Please try again.",
                status_code=resp.status_code,
                retryable=False,
            ) from exc


@dataclass
class IdeaVoteState:
    """Locally cached vote state for one idea."""

    idea_id: str
    upvotes: int
    voter_ids: list[str] = field(default_factory=list)

    def has_voted(self, user_id: str) -> bool:
        return user_id in self.voter_ids


class OptimisticVoteController:
    def __init__(self, api: VoteApiClient, notifier: Notifier) -> None:
        self._api = api
        self._notifier = notifier

    @staticmethod
    def apply_optimistic(state: IdeaVoteState, user_id: str) -> None:
        """Flip *user_id*'s membership locally, clamping the count at zero."""
        if state.has_voted(user_id):
            state.upvotes = max(0, state.upvotes - 1)
            state.voter_ids = [v for v in state.voter_ids if v != user_id]
        else:
            state.upvotes += 1
            state.voter_ids = [*state.voter_ids, user_id]

    def toggle(self, state: IdeaVoteState, user_id: str) -> VoteToggleResponse:
        """Optimistically toggle, then reconcile with the server or roll back.

        Any failure rolls back to the snapshot and is re-raised.
        """
        snapshot = deepcopy(state)
        self.apply_optimistic(state, user_id)

        try:
            result = self._api.toggle_vote(state.idea_id)
        except Exception as exc:
            state.upvotes = snapshot.upvotes
            state.voter_ids = snapshot.voter_ids
            logger.warning(
                "vote_toggle_rolled_back: idea_id=%s status=%s retryable=%s error=%s",
                state.idea_id,
                getattr(exc, "status_code", None),
                getattr(exc, "retryable", False),
                type(exc).__name__,
            )
            self._notifier.error("Failed to update upvote. Please try again.")
            raise

        state.upvotes = result.upvotes
        others = [v for v in state.voter_ids if v != user_id]
        state.voter_ids = [*others, user_id] if result.upvoted else others
        if result.upvoted:
            self._notifier.success("Idea upvoted!")
        else:
            self._notifier.info("Upvote removed")
        return result
