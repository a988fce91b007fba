"""
Request/response logging middleware.

Logs API requests with timing and status codes. Binds a ``request_id``
to structlog's contextvars so every logger invoked while the request is
processed (provider client, image service, store) includes it. A caller
supplied ``X-Request-ID`` is reused so IDs line up across services.
"""

import logging
import re
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("asin_lookup.api")

_REQUEST_ID_RE = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

QUIET_PATHS = ("/health", "/processed/")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs every HTTP request and response.

    Adds ``X-Request-ID`` and ``X-Response-Time`` headers to the response.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        incoming = request.headers.get("x-request-id", "")
        request_id = incoming if _REQUEST_ID_RE.match(incoming) else uuid.uuid4().hex[:8]

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start_time) * 1000, 1)

        if not request.url.path.startswith(QUIET_PATHS):
            logger.info(
                f"{request.method} {request.url.path} "
                f"→ {response.status_code} "
                f"({duration_ms}ms) "
                f"[{request.client.host if request.client else 'unknown'}]"
            )

        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        response.headers["X-Request-ID"] = request_id

        # Clear context to prevent leaking between requests
        structlog.contextvars.clear_contextvars()

        return response
