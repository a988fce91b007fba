"""
Global exception handlers for the FastAPI application.

Catches:
1. AsinLookupError subclasses, mapped to HTTP status codes.
2. Unhandled Exception, returned as 500 Internal Server Error with a
   unique ``error_id`` for log correlation.

HTTPException is NOT handled here. FastAPI's built-in handler deals
with those, and Sentry's ``before_send`` filter drops 4xx events.
"""

import logging
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    AsinLookupError,
    ConflictError,
    PersistenceError,
    ProviderError,
    RecordNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers on the FastAPI app.

    Called from ``create_app()`` after all middleware and routers
    are registered.
    """

    @app.exception_handler(AsinLookupError)
    async def handle_app_error(request: Request, exc: AsinLookupError) -> JSONResponse:
        """Map AsinLookupError subclasses to HTTP status codes."""
        status_code = _get_status_code(exc)
        log = logger.error if status_code >= 500 else logger.warning
        log(
            f"{type(exc).__name__}: {exc.message}",
            exc_info=exc if status_code >= 500 else None,
            extra={"error_type": type(exc).__name__, "path": request.url.path},
        )
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "error_type": type(exc).__name__},
        )

    @app.exception_handler(Exception)
    async def handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions: log, return 500 with error_id."""
        error_id = uuid.uuid4().hex[:8]
        logger.exception(
            f"Unhandled exception (error_id={error_id})",
            extra={"error_id": error_id, "path": request.url.path},
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "error_id": error_id,
            },
        )


def _get_status_code(exc: AsinLookupError) -> int:
    """Map exception type to HTTP status code."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, RecordNotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, ProviderError):
        return 502
    if isinstance(exc, PersistenceError):
        return 503
    # Base AsinLookupError fallback
    return 500
