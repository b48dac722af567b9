"""Request session resolution from Supabase access tokens.

Clients send the Supabase access token as ``Authorization: Bearer <jwt>``.
``get_current_session`` returns None for anonymous or invalid tokens;
``require_session`` turns that into a 401.
"""

from __future__ import annotations

import logging

from fastapi import Depends, Header, HTTPException

from app.db.supabase import get_supabase
from app.models.social import Session

logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_session(
    authorization: str | None = Header(default=None),
) -> Session | None:
    """Resolve the caller from the bearer token, or None."""
    token = _bearer_token(authorization)
    if token is None:
        return None

    try:
        response = get_supabase().auth.get_user(token)
    except Exception as exc:
        logger.warning(
            "session_lookup_failed",
            extra={"error_type": type(exc).__name__, "error_message": str(exc)},
        )
        return None

    user = getattr(response, "user", None)
    if user is None:
        return None
    return Session(user_id=user.id, email=getattr(user, "email", None))


def require_session(
    session: Session | None = Depends(get_current_session),
) -> Session:
    """Dependency for endpoints that need a signed-in caller."""
    if session is None:
        raise HTTPException(status_code=401, detail="Sign in required")
    return session
