"""Request-boundary identity and capability checks.

The identity provider issues JWT bearer tokens whose ``sub`` claim is an
opaque user id and whose boolean ``admin`` / ``moderator`` claims carry
roles.  Claims are translated into a capability set exactly once, here;
routes only ever ask "does this principal hold capability X?".
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from backend.app.core.settings import settings

logger = logging.getLogger(__name__)

CAPABILITY_VOTE = "vote"
CAPABILITY_MODERATE = "moderate"
CAPABILITY_ADMIN = "admin"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller: opaque user id plus derived capabilities."""

    user_id: str
    capabilities: frozenset[str]

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def capabilities_from_claims(claims: dict[str, object]) -> frozenset[str]:
    """Derive the capability set from role claims on a decoded token."""
    caps = {CAPABILITY_VOTE}
    is_admin = claims.get("admin") is True
    if is_admin:
        caps.add(CAPABILITY_ADMIN)
    if is_admin or claims.get("moderator") is True:
        caps.add(CAPABILITY_MODERATE)
    return frozenset(caps)


def create_access_token(
    user_id: str,
    *,
    admin: bool = False,
    moderator: bool = False,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Issue a signed token in the identity provider's format."""
    claims: dict[str, object] = {
        "sub": user_id,
        "exp": datetime.now(UTC) + expires_in,
    }
    if admin:
        claims["admin"] = True
    if moderator:
        claims["moderator"] = True
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_principal(token: str) -> Principal | None:
    """Return the principal for *token*, or None if it is invalid."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as exc:
        logger.info("auth_token_rejected: reason=%s", type(exc).__name__)
        return None
    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return Principal(user_id=subject, capabilities=capabilities_from_claims(payload))


def get_current_principal(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> Principal:
    """FastAPI dependency: the authenticated caller, or 401."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please sign in to continue.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    principal = decode_principal(credentials.credentials)
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please sign in to continue.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_capability(capability: str) -> Callable[[Principal], Principal]:
    """Dependency factory that rejects callers lacking *capability* with 403."""

    def _check(principal: CurrentPrincipal) -> Principal:
        if not principal.can(capability):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"The '{capability}' capability is required.",
            )
        return principal

    return _check
