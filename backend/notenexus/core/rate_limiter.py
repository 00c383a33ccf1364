"""
Rate Limiting for NoteNexus API
===============================
Implements rate limiting using slowapi.

Storage is in-process by default; point RATE_LIMIT_STORAGE_URI at Redis
when running several workers.

Endpoints with their own limits:
- /users/generate-otp: 5 req/min (each call sends an email)
- /users/signin: 10 req/min (brute force protection)
- /contact: 3 req/min
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from notenexus.core.config import settings
from notenexus.core.logging_config import logger


OTP_LIMIT = "5/minute"
SIGNIN_LIMIT = "10/minute"
CONTACT_LIMIT = "3/minute"


def get_client_identifier(request: Request) -> str:
    """Rate limit key: the authenticated user when known, else the client IP"""
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Answer 429 in the common error envelope, with Retry-After"""
    retry_after = "60"

    logger.warning(
        f"[RateLimit] Exceeded for {get_client_identifier(request)}: {exc.detail}",
        extra={"event_type": "rate_limited", "http_path": request.url.path}
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "code": "RATE_LIMITED",
                "message": "Too many requests. Please slow down.",
                "details": {"limit": str(exc.detail)},
            },
        },
        headers={"Retry-After": retry_after},
    )
