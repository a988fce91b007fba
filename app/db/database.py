"""
Database engine and session management for async SQLAlchemy.

The engine is owned by a ``Database`` object built from settings at
startup and stored on ``app.state``; nothing is created at import time.

Usage:
    db = Database.from_settings(settings)
    await db.init(create_tables=True)
    async with db.session() as session:
        ...
    await db.dispose()
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from app.config import Settings
from app.db.models import Base
from app.db.query_logger import attach_query_logger

logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and hands out unit-of-work sessions."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        if engine.dialect.name == "sqlite":
            _enable_sqlite_foreign_keys(engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create the async engine from settings."""
        kwargs: dict = {"echo": settings.app_debug}
        # SQLite pools don't take sizing arguments
        if not settings.database_url.startswith("sqlite"):
            kwargs.update(
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
                pool_recycle=settings.database_pool_recycle,
                pool_pre_ping=settings.database_pool_pre_ping,
                pool_timeout=settings.database_pool_timeout,
            )
        engine = create_async_engine(settings.database_url, **kwargs)
        attach_query_logger(engine, settings.query_slow_threshold_ms)
        return cls(engine)

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "Database":
        """Create a database handle for an explicit URL (tests, scripts)."""
        return cls(create_async_engine(url, **kwargs))

    async def init(self, create_tables: bool = False) -> "Database":
        """Prepare the database. Optionally create missing tables."""
        if create_tables:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ensured")
        return self

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Run a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    # SQLite needs PRAGMA foreign_keys for FK enforcement
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's Database handle."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async database session.

    Usage:
        @router.get("/accounts")
        async def list_accounts(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_database(request).session() as session:
        yield session
