"""Pytest configuration and shared fixtures.

This module provides:
- Test settings pointing at an in-memory SQLite database
- A fresh engine (and so a fresh, empty database) per test
- The assembled application with its stores and services registered
- An httpx client talking to the application over ASGI
"""

# Set environment variables BEFORE any imports that trigger Settings validation
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from core.application import Application
from core.config import Settings, clear_settings_cache
from core.database import enable_sqlite_foreign_keys

# =============================================================================
# Test Settings
# =============================================================================

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def _clear_settings() -> Generator[None]:
    """Clear the settings lru_cache between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(database_url=TEST_DATABASE_URL)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine.

    StaticPool keeps the single connection (and so the database) alive
    for the whole test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)

    yield engine

    await engine.dispose()


# =============================================================================
# Application Fixtures
# =============================================================================


async def start_application(settings: Settings, engine: AsyncEngine) -> Application:
    from main import create_app

    application = create_app(settings, engine=engine)
    await application.startup()
    return application


@pytest_asyncio.fixture
async def application(
    test_settings: Settings, test_engine: AsyncEngine
) -> AsyncGenerator[Application]:
    """The assembled application, schema created, stores registered."""
    application = await start_application(test_settings, test_engine)

    yield application

    await application.shutdown()


@pytest_asyncio.fixture
async def client(application: Application) -> AsyncGenerator[AsyncClient]:
    """HTTP client for route tests.

    Lifespan events do not run over ASGITransport; the application
    fixture performs startup and shutdown itself.
    """
    transport = ASGITransport(app=application.http)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def app_factory(
    test_engine: AsyncEngine,
) -> AsyncGenerator[Callable[..., Awaitable[Application]]]:
    """Build applications with settings overrides, e.g. a small body limit.

    Every application built is shut down after the test.
    """
    started: list[Application] = []

    async def factory(**overrides: Any) -> Application:
        settings = Settings(database_url=TEST_DATABASE_URL, **overrides)
        application = await start_application(settings, test_engine)
        started.append(application)
        return application

    yield factory

    for application in started:
        await application.shutdown()
