"""
Health check with dependency probes.

Checks:
- Application: always up if responding
- Database: ``SELECT 1`` on the product store's engine
- Image overlay: the badge overlay file is present (listing images
  fall back to the originals without it)

Returns 200 with ``"healthy"`` or ``"degraded"``, never 503.
Load balancers check for 200; the body indicates component health.
"""

import logging
import time
from datetime import UTC, datetime
from pathlib import Path

from app.db.database import Database

logger = logging.getLogger(__name__)


async def check_database(database: Database) -> dict:
    """
    Probe database connectivity.

    Returns:
        ``{"status": "up", "latency_ms": float}`` or
        ``{"status": "down", "error": str}``
    """
    try:
        start = time.monotonic()
        await database.ping()
        latency = round((time.monotonic() - start) * 1000, 1)
        return {"status": "up", "latency_ms": latency}
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return {"status": "down", "error": str(e)}


def check_overlay(overlay_path: str | Path) -> dict:
    if Path(overlay_path).is_file():
        return {"status": "up"}
    return {"status": "down", "error": f"overlay not found at {overlay_path}"}


async def get_health_status(
    app_name: str,
    app_version: str,
    app_env: str,
    database: Database | None = None,
    overlay_path: str | Path | None = None,
) -> dict:
    """
    Build complete health status response.

    Overall status is ``"healthy"`` if all configured probes pass,
    ``"degraded"`` if any fail.
    """
    components: dict[str, dict] = {}
    if database is not None:
        components["database"] = await check_database(database)
    if overlay_path is not None:
        components["overlay"] = check_overlay(overlay_path)

    all_up = all(c["status"] == "up" for c in components.values())
    overall = "healthy" if (not components or all_up) else "degraded"

    return {
        "status": overall,
        "app": app_name,
        "version": app_version,
        "environment": app_env,
        "timestamp": datetime.now(UTC).isoformat(),
        "components": components,
    }
