"""
GeoPatrol Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (mocked DB, in-memory DB, API
       client, temp upload directory).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_storage: Temporary upload directory
    ├── sample_image_bytes: Fake image content for upload tests
    ├── test_settings: Settings pointing at temp_storage, cheap bcrypt
    ├── db_engine: In-memory SQLite with all tables created
    ├── app: create_app(test_settings, engine=db_engine)
    ├── test_client: HTTPX AsyncClient for API endpoint testing
    └── count_reports / count_couriers: row counts straight from db_engine
"""

import os
import tempfile

# Override settings for testing BEFORE any app imports
# Why: importing geopatrol.main builds a default app from the environment
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="geopatrol_test_")
os.environ["JWT_SECRET"] = "test-secret-not-real"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from geopatrol.config import Settings
from geopatrol.database import Base, build_session_factory
from geopatrol.main import create_app
from geopatrol.models.courier import Courier
from geopatrol.models.report import DeliveryReport


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures (created fresh for each test)
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    What:    An AsyncMock that simulates AsyncSession behavior.
    Why:     Service and repository tests should not require a real database.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = courier
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh upload directory per test (pytest cleans it up)."""
    storage_dir = tmp_path / "uploads"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """
    Minimal JPEG bytes for upload tests.

    SOI marker + JFIF header + EOI marker. Not a real photograph; nothing
    in the service decodes it.
    """
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def test_settings(temp_storage):
    return Settings(
        database_url="sqlite+aiosqlite://",
        upload_dir=temp_storage,
        jwt_secret="test-secret-not-real",
        bcrypt_rounds=4,
        log_level="WARNING",
        max_upload_size=64 * 1024,
    )


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with the schema created.

    StaticPool keeps one connection alive so every session sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def app(test_settings, db_engine):
    return create_app(test_settings, engine=db_engine)


@pytest_asyncio.fixture
async def test_client(app):
    """
    Provides an async HTTP test client for endpoint testing.

    Uses ASGITransport to route requests directly to the app; the lifespan
    does not run, the schema comes from db_engine.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def count_reports(db_engine):
    """Returns an async callable giving the number of report rows."""
    session_factory = build_session_factory(db_engine)

    async def _count() -> int:
        async with session_factory() as session:
            result = await session.execute(select(func.count()).select_from(DeliveryReport))
            return result.scalar_one()

    return _count


@pytest.fixture
def count_couriers(db_engine):
    """Returns an async callable giving the number of rows in `users` for a username."""
    session_factory = build_session_factory(db_engine)

    async def _count(username: str) -> int:
        async with session_factory() as session:
            result = await session.execute(
                select(func.count()).select_from(Courier).where(Courier.username == username)
            )
            return result.scalar_one()

    return _count
