"""Shared dependencies for API endpoints.

Local-first mode uses DEFAULT_USER_ID; hosted mode validates a JWT from the
session cookie. Every service call receives the resolved principal id
explicitly.
"""

import uuid
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from boardshare.core.config import settings
from boardshare.core.database import get_db

# Generic 401 detail. Never says why auth failed (expired, bad signature, etc.).
_UNAUTHORIZED_DETAIL = {
    "code": "UNAUTHORIZED",
    "message": "Authentication required",
}


def _decode_session_cookie(request: Request) -> uuid.UUID | None:
    """Return the user id from a valid session cookie, or None.

    Verifies the HS256 signature and the exp, aud and iss claims.
    """
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        return None
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret.get_secret_value(),
            algorithms=["HS256"],
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
        )
        return uuid.UUID(payload["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
        return None


def get_current_user_id(request: Request) -> uuid.UUID:
    """Get current user ID from auth context.

    Args:
        request: HTTP request (injected by FastAPI).

    Returns:
        UUID of the current authenticated user.

    Raises:
        HTTPException: 401 for any auth failure.
    """
    if not settings.auth_enabled:
        # Local-first mode: use DEFAULT_USER_ID from environment
        if settings.default_user_id is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=_UNAUTHORIZED_DETAIL,
            )
        return settings.default_user_id

    user_id = _decode_session_cookie(request)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_UNAUTHORIZED_DETAIL,
        )
    return user_id


def get_optional_user_id(request: Request) -> uuid.UUID | None:
    """Get current user ID if there is one, None for anonymous callers.

    Used by the share link preview, which anonymous visitors may call.
    An invalid cookie is treated as no cookie.
    """
    if not settings.auth_enabled:
        return settings.default_user_id
    return _decode_session_cookie(request)


# Reusable type aliases for dependency injection
CurrentUserId = Annotated[uuid.UUID, Depends(get_current_user_id)]
OptionalUserId = Annotated[uuid.UUID | None, Depends(get_optional_user_id)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
