"""
NoteNexus - HTTP Middleware
Request context (request id, caller), access logging and response headers
"""

import time
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from notenexus.core.config import settings
from notenexus.core.exceptions import AuthenticationError
from notenexus.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    generate_request_id,
)
from notenexus.core.security import decode_token


QUIET_PATHS = {"/health", "/api/v1/health/live", "/api/v1/health/ready", "/favicon.ico"}


def api_area(path: str) -> Optional[str]:
    """First segment under the API prefix, e.g. 'notes' for /api/v1/notes/note/all"""
    prefix = f"/api/{settings.API_VERSION}/"
    if not path.startswith(prefix):
        return None
    return path[len(prefix):].split("/", 1)[0] or None


def token_subject(request: Request) -> str:
    """User id from the bearer token, if it decodes; the route still does the real check"""
    header = request.headers.get("authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return ""
    try:
        return decode_token(token)["sub"]
    except AuthenticationError:
        return ""


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Per-request logging context.

    - Propagates X-Request-ID (or makes one) and reports X-Response-Time
    - Puts the caller's user id into the log context for the whole request
    - Logs one line per API call with its area (users, notes, tips, ...)
    - Uploaded files and health probes are served without access logs
    - Every response carries X-Content-Type-Options: nosniff
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        user_id = token_subject(request)
        set_request_id(request_id)
        set_user_id(user_id)

        path = request.url.path
        quiet = path in QUIET_PATHS or path.startswith(settings.UPLOAD_URL_PREFIX.rstrip("/") + "/")
        start_time = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"✗ {request.method} {path} - {type(exc).__name__} ({duration_ms:.2f}ms)",
                    exc_info=True,
                    extra={
                        "event_type": "http_request_error",
                        "http_method": request.method,
                        "http_path": path,
                        "api_area": api_area(path),
                        "duration_ms": duration_ms,
                    }
                )
                raise

            duration_ms = (time.perf_counter() - start_time) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
            response.headers["X-Content-Type-Options"] = "nosniff"

            if not quiet:
                logger.log_request(
                    request.method, path, response.status_code, duration_ms,
                    api_area=api_area(path), caller_id=user_id or None,
                )
            return response
        finally:
            set_request_id("")
            set_user_id("")


__all__ = ["RequestContextMiddleware", "api_area", "token_subject"]
