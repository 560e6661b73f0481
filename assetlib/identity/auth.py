"""Auth dependency for session-token protected routes."""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Cookie, Header

from assetlib.identity.jwt_service import AuthContext, SigningKeyMissing, default_jwt_service

logger = logging.getLogger(__name__)

SESSION_COOKIE = "SessionToken"


def _extract_token(authorization: Optional[str], session_token: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1]
    return session_token or None


def get_optional_auth_context(
    authorization: Optional[str] = Header(default=None),
    session_token: Optional[str] = Cookie(default=None, alias=SESSION_COOKIE),
) -> Optional[AuthContext]:
    """Verified identity, or None when the caller must sign in first.

    A missing signing key is a server fault and propagates.
    """
    token = _extract_token(authorization, session_token)
    if not token:
        return None
    try:
        return default_jwt_service().decode_token(token)
    except SigningKeyMissing:
        logger.error("session tokens cannot be verified: AUTH_JWT_SIGNING is not configured")
        raise
    except (ValueError, TypeError) as exc:
        logger.info("rejected session token: %s", exc)
        return None
