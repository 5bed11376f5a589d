"""Database engine, session, and schema management.

Supports two backends:
- Local: SQLite via aiosqlite (default)
- Server: PostgreSQL via asyncpg with a pooled engine
"""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import NullPool

from core.config import Settings, get_settings
from core.logger import get_logger

logger = get_logger(__name__)


class Base(DeclarativeBase):
    pass


def create_engine(settings: Settings | None = None) -> AsyncEngine:
    settings = settings or get_settings()

    engine_kwargs: dict[str, Any] = {"echo": settings.db_echo}
    if settings.is_sqlite:
        # SQLite doesn't support connection pooling
        engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_pool_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )

    engine = create_async_engine(settings.database_url, **engine_kwargs)

    if settings.is_sqlite:
        enable_sqlite_foreign_keys(engine)

    return engine


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite does not enforce foreign keys unless explicitly enabled."""

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Verify the database is reachable and create any missing tables."""
    # Import models so every Document subclass is registered on Base.metadata
    import models  # noqa: F401

    logger.info("db.connectivity.verifying")
    async with asyncio.timeout(30):
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            await conn.run_sync(Base.metadata.create_all)
    logger.info("db.schema.ready", tables=sorted(Base.metadata.tables))


async def dispose_engine(engine: AsyncEngine) -> None:
    await engine.dispose()
    logger.info("db.engine.disposed")
