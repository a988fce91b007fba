"""
Gunicorn configuration for ASIN Lookup production deployment.

Uses Uvicorn workers for async ASGI support. Each worker owns its own
database pool, so keep workers × DATABASE_POOL_SIZE under the server's
connection limit.
"""

import multiprocessing
import os

# ─── Server Socket ───────────────────────────────────────────
bind = f"0.0.0.0:{os.getenv('PORT', os.getenv('APP_PORT', '8000'))}"

# ─── Worker Processes ────────────────────────────────────────
worker_class = "uvicorn.workers.UvicornWorker"

# (2 × CPU cores) + 1, capped by WEB_CONCURRENCY
workers = min(multiprocessing.cpu_count() * 2 + 1, int(os.getenv("WEB_CONCURRENCY", "4")))

# Concurrency is via asyncio
threads = 1

# ─── Timeouts ────────────────────────────────────────────────
# A 20-ASIN batch can wait on the provider (30s) plus image work
timeout = int(os.getenv("GUNICORN_TIMEOUT", "120"))
graceful_timeout = 30
keepalive = 5

# ─── Worker Lifecycle ────────────────────────────────────────
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "1000"))
max_requests_jitter = 50

# Async engines don't fork well
preload_app = False

# ─── Logging ─────────────────────────────────────────────────
# structlog's LoggingMiddleware writes the request log
accesslog = None
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# ─── Server Mechanics ────────────────────────────────────────
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")
