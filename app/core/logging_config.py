"""
Logging setup for ASIN Lookup.

Modules log through ``logging.getLogger(__name__)``. One root handler
carrying structlog's ProcessorFormatter renders every record, as console
lines in development and as JSON lines elsewhere.

Two pieces of context ride along on each line:
    request_id  bound per HTTP request by LoggingMiddleware
    asin        bound per ASIN by ``lookup_context`` while the lookup
                pipeline resolves it, so batch lines can be told apart

Usage:
    setup_logging(settings.app_env, settings.log_level, settings.log_format)

    with lookup_context("B09C5RG6KV"):
        logger.info("Returned from cache")   # carries asin=B09C5RG6KV
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from app.config import AppEnv

# Loggers that run the lookup pipeline; PIPELINE_LOG_LEVEL tunes them apart from the root
PIPELINE_LOGGERS = (
    "app.services.lookup_service",
    "app.services.image_service",
    "app.providers",
    "app.converters",
)

# Chatty libraries: per-request access lines, SQL echo, HTTP wire logs, Pillow plugin probing
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore", "PIL")


def setup_logging(
    app_env: AppEnv,
    log_level: str = "INFO",
    log_format: str = "auto",
    pipeline_log_level: str = "",
) -> None:
    """
    Install the structured root handler.

    Args:
        app_env: Deployment environment; picks the renderer when
                 ``log_format`` is ``"auto"``.
        log_level: Root level. Unknown names fall back to INFO.
        log_format: ``"json"``, ``"console"`` or ``"auto"``.
        pipeline_log_level: Level for PIPELINE_LOGGERS. Empty inherits the root.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(app_env, log_format),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(log_level))

    pipeline_level = _level(pipeline_log_level) if pipeline_log_level else logging.NOTSET
    for name in PIPELINE_LOGGERS:
        logging.getLogger(name).setLevel(pipeline_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def lookup_context(asin: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with ``asin``."""
    with structlog.contextvars.bound_contextvars(asin=asin):
        yield


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def _renderer(app_env: AppEnv, log_format: str) -> structlog.types.Processor:
    """JSON for aggregation, colored console for local work."""
    if log_format == "json" or (log_format == "auto" and app_env != AppEnv.DEVELOPMENT):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)
