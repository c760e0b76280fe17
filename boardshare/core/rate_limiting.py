"""Rate limiting configuration using slowapi.

Redeem carries two throttles. The per-account limit keeps one user from
hammering the locking redeem transaction. The per-address limit applies
to every caller from one client IP, signed in or not, so secrets cannot
be brute-forced by rotating accounts.

Usage in routers:
    from boardshare.core.rate_limiting import client_ip_key, limiter, redeem_ip_limit

    @router.post("/redeem")
    @limiter.limit(settings.rate_limit_redeem)
    @limiter.limit(redeem_ip_limit, key_func=client_ip_key)
    async def redeem_share_link(request: Request, ...):
        ...
"""

import jwt
from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from boardshare.core.config import settings

_DEFAULT_RETRY_AFTER = "60"

# Longer subjects are not user UUIDs; they fall back to the address key.
_MAX_SUBJECT_LENGTH = 36


def _session_subject(request: Request) -> str | None:
    """Return the JWT subject from the session cookie, or None.

    Only keys the limiter; deps.py does the authoritative check.
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
    except jwt.InvalidTokenError:
        return None
    sub = payload.get("sub")
    if not isinstance(sub, str) or len(sub) > _MAX_SUBJECT_LENGTH:
        return None
    return sub


def account_key(request: Request) -> str:
    """Default limiter key: one bucket per signed-in account.

    Key format:
    - Auth disabled: "{ip}" (local dev mode)
    - Auth enabled + valid JWT: "user:{sub}"
    - Auth enabled + no/invalid JWT: "unauth:{ip}"
    """
    if not settings.auth_enabled:
        return get_remote_address(request)
    sub = _session_subject(request)
    if sub is not None:
        return f"user:{sub}"
    return f"unauth:{get_remote_address(request)}"


def client_ip_key(request: Request) -> str:
    """Limiter key shared by every caller from one client address."""
    return f"ip:{get_remote_address(request)}"


def redeem_ip_limit() -> str:
    """Per-address redeem limit, read per request so tests can tighten it."""
    return settings.rate_limit_redeem_ip


# In-memory storage suits a single instance; for several, point
# RATELIMIT_STORAGE_URL at Redis.
limiter = Limiter(
    key_func=account_key,
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(
    _request: Request,
    exc: RateLimitExceeded,
) -> Response:
    """Handle rate limit exceeded errors.

    Args:
        request: The incoming request.
        exc: The rate limit exception.

    Returns:
        JSONResponse with 429 status and retry-after header.
    """
    # exc.detail looks like "10 per 5 minute"; fall back when it is not numeric
    try:
        retry_after = str(exc.detail.split()[-1])
        int(retry_after.rstrip("s"))
    except (ValueError, AttributeError, IndexError):
        retry_after = _DEFAULT_RETRY_AFTER

    return JSONResponse(
        status_code=429,
        content={
            "error": {
                "code": "RATE_LIMITED",
                "message": f"Too many join attempts. Rate limit exceeded: {exc.detail}",
            }
        },
        headers={"Retry-After": retry_after},
    )
