"""
ASIN Lookup FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.staticfiles import StaticFiles

from app import __version__
from app.config import Settings, get_settings
from app.converters.ebay_converter import EbayConverter
from app.core.logging_config import setup_logging
from app.core.sentry_config import init_sentry
from app.db.database import Database
from app.db.repositories import ProductStore
from app.middleware.logging_middleware import LoggingMiddleware
from app.providers.amazon_helper import AmazonHelperClient
from app.providers.imgbb import ImgBBClient
from app.services.image_service import ImageService
from app.services.lookup_service import LookupService

logger = logging.getLogger(__name__)


def build_lookup_service(settings: Settings, database: Database) -> LookupService:
    """Wire the lookup pipeline from settings."""
    image_host = None
    if settings.image_upload_enabled:
        image_host = ImgBBClient(
            api_key=settings.imgbb_api_key,
            upload_url=settings.imgbb_upload_url,
            timeout=settings.image_upload_timeout_seconds,
        )
    image_service = ImageService(
        processed_dir=settings.processed_images_dir,
        overlay_path=settings.overlay_image_path,
        image_host=image_host,
        download_timeout=settings.image_download_timeout_seconds,
        max_images=settings.max_listing_images,
    )
    return LookupService(
        store=ProductStore(database),
        provider=AmazonHelperClient(
            base_url=settings.provider_base_url,
            timeout=settings.provider_timeout_seconds,
        ),
        generator=EbayConverter(image_service),
        ttl_seconds=settings.cache_ttl_seconds,
        base_url=settings.public_base_url,
        max_batch=settings.batch_max_asins,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown lifecycle management."""
    settings = get_settings()
    # Startup
    logger.info(f"Starting {settings.app_name} v{__version__} ({settings.app_env.value})")

    database = Database.from_settings(settings)
    await database.init(create_tables=settings.database_auto_create)
    app.state.database = database
    app.state.lookup_service = build_lookup_service(settings, database)

    if not settings.image_upload_enabled:
        logger.warning("IMGBB_API_KEY not set; processed images are served locally")
    logger.info(f"Cache TTL: {settings.cache_ttl_seconds}s")

    yield
    # Shutdown
    await database.dispose()
    logger.info(f"Shutting down {settings.app_name}")


def create_app() -> FastAPI:
    """Application factory. Creates and configures the FastAPI instance."""
    settings = get_settings()

    # 1. Configure structured logging (before anything else)
    setup_logging(
        app_env=settings.app_env,
        log_level=settings.log_level,
        log_format=settings.log_format,
        pipeline_log_level=settings.pipeline_log_level,
    )

    # 2. Initialize Sentry (before app creation so ASGI integration hooks in)
    init_sentry(
        dsn=settings.sentry_dsn,
        app_env=settings.app_env,
        app_version=__version__,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )

    # OpenAPI tag descriptions for Swagger / ReDoc
    openapi_tags = [
        {
            "name": "Products",
            "description": "ASIN lookup with caching, batch lookup, eBay content "
                           "regeneration, and operator edits.",
        },
        {
            "name": "Accounts",
            "description": "Seller accounts that products are grouped under.",
        },
        {
            "name": "Categories",
            "description": "Per-account categories and their template columns.",
        },
        {
            "name": "System",
            "description": "Health checks and operational endpoints.",
        },
    ]

    app = FastAPI(
        title=settings.app_name,
        description=(
            "ASIN Lookup caches Amazon product data by ASIN and derives eBay "
            "listing content (title, HTML description, badge-overlaid images) "
            "for each product.\n\n"
            "Products are refreshed from the catalog provider when they are "
            "older than the configured cache TTL."
        ),
        version=__version__,
        lifespan=lifespan,
        openapi_tags=openapi_tags,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        redirect_slashes=False,
    )

    # Middleware order: Logging → GZip → CORS (LIFO, CORS outermost)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)
    # CORS origins: dev uses Vite default, prod reads from CORS_ALLOWED_ORIGINS env var
    if settings.is_development:
        cors_origins = ["http://localhost:5173", "http://localhost:3000"]
    elif settings.cors_allowed_origins:
        cors_origins = [o.strip() for o in settings.cors_allowed_origins.split(",") if o.strip()]
    else:
        cors_origins = []

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from app.api.v1 import accounts, categories, products

    @app.get("/health", tags=["System"])
    async def health_check(request: Request):
        from app.core.health import get_health_status

        return await get_health_status(
            app_name=settings.app_name,
            app_version=__version__,
            app_env=settings.app_env.value,
            database=getattr(request.app.state, "database", None),
            overlay_path=settings.overlay_image_path,
        )

    app.include_router(products.router, prefix="/api/v1")
    app.include_router(accounts.router, prefix="/api/v1")
    app.include_router(categories.router, prefix="/api/v1")

    # Processed listing images, the local fallback when upload is unavailable
    processed_dir = Path(settings.processed_images_dir)
    processed_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/processed", StaticFiles(directory=processed_dir), name="processed")

    # Register global exception handlers (after routers)
    from app.middleware.exception_handler import register_exception_handlers

    register_exception_handlers(app)

    return app


app = create_app()
