"""Pytest configuration and fixtures for SumLog tests.

This module provides reusable fixtures for:
- Settings overrides
- A file-backed SQLite database per test
- A mocked Redis client backed by a dict
- The calculation service and an async test client wired to them
"""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from sumlog.config import Settings
from sumlog.core.database import Database
from sumlog.dependencies import get_calculation_service
from sumlog.main import create_app
from sumlog.repositories.history import HistoryLog
from sumlog.services.cache import CacheAsideStore
from sumlog.services.calculator import CalculationService

# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Create test-specific settings."""
    return Settings(
        app_env="development",  # type: ignore[arg-type]
        debug=False,
        log_level="DEBUG",  # type: ignore[arg-type]
        log_format="console",  # type: ignore[arg-type]
        config_mode="local",  # type: ignore[arg-type]
        cache_timeout=1.0,
        database_timeout=5.0,
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """SQLite URL for a database file private to the test."""
    return f"sqlite+aiosqlite:///{tmp_path / 'sumlog.db'}"


@pytest.fixture
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """Open a Database for the test and dispose of it afterwards."""
    db = Database(database_url)
    yield db
    await db.close()


@pytest.fixture
async def history_log(database: Database) -> HistoryLog:
    """HistoryLog with its table already created."""
    log = HistoryLog(database, timeout=5.0)
    await log.ensure_schema()
    return log


# =============================================================================
# Cache Fixtures
# =============================================================================


@pytest.fixture
def redis_data() -> dict[str, str]:
    """Backing storage of the mock Redis client."""
    return {}


@pytest.fixture
def mock_redis(redis_data: dict[str, str]) -> MagicMock:
    """Create a mock Redis client that remembers what was set."""

    def _set(key: str, value: str) -> bool:
        redis_data[key] = value
        return True

    redis = MagicMock()
    redis.get = AsyncMock(side_effect=lambda key: redis_data.get(key))
    redis.set = AsyncMock(side_effect=_set)
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock(return_value=None)
    return redis


@pytest.fixture
def cache_store(mock_redis: MagicMock) -> CacheAsideStore:
    """CacheAsideStore over the mock Redis client."""
    return CacheAsideStore(mock_redis, timeout=1.0)


# =============================================================================
# Service & Application Fixtures
# =============================================================================


@pytest.fixture
def calculation_service(
    cache_store: CacheAsideStore, history_log: HistoryLog
) -> CalculationService:
    """CalculationService over the mock cache and the SQLite history log."""
    return CalculationService(cache=cache_store, history=history_log)


@pytest.fixture
def app(
    test_settings: Settings, calculation_service: CalculationService
) -> Generator[FastAPI, None, None]:
    """Create a test FastAPI application wired to the test service."""
    app = create_app(settings=test_settings)
    app.dependency_overrides[get_calculation_service] = lambda: calculation_service

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing.

    This client makes requests to the test app without starting a server.

    Usage:
        async def test_endpoint(async_client: AsyncClient):
            response = await async_client.get("/")
            assert response.status_code == 200
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
