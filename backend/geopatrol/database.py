"""
GeoPatrol Backend — Database Session Management
=================================================

What:  Async SQLAlchemy engine factory, session factory, and FastAPI dependency.
How:   `create_app()` calls `build_engine()` once and keeps the engine and
       session factory on `app.state`; `get_db_session` hands out one
       session per request and returns its connection to the pool afterwards.
Who:   Route handlers via FastAPI's dependency injection system.

Connection Pooling Strategy:
    pool_size=10:     Matches the connection limit the service has always run with
    max_overflow=0:   The pool is a hard bound; extra requests wait for a connection
    pool_pre_ping:    Validates connections before use (catches stale connections)
    pool_recycle=3600: Recycles connections every hour

    Each checked-out connection serves exactly one in-flight query at a time.
"""

from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from geopatrol.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object used by Alembic and by `create_all`.
    """
    pass


# ── Engine & Session Factories ────────────────────────────────────────────
def build_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine (and its bounded connection pool) from settings."""
    return create_async_engine(
        settings.sqlalchemy_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
        # SQL echo only when debugging; it is noisy
        echo=settings.log_level == "DEBUG",
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: rows stay readable after the service commits
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory stored on app.state
        2. Yields it to the route handler (services commit explicitly)
        3. On error: rolls back so nothing half-written survives
        4. Always: closes the session (returns connection to pool)

    Why services commit (not this dependency):
        A failed commit must surface as a PersistenceError response, which
        only happens if the commit runs inside the handler.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def check_connection(engine: AsyncEngine) -> None:
    """Runs SELECT 1; raises whatever the driver raises when unreachable."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_tables(engine: AsyncEngine) -> None:
    """Idempotently creates all tables known to `Base.metadata`."""
    # Model modules register themselves on Base when imported
    from geopatrol.models import courier, report  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Gracefully closes all connections in the pool (application shutdown)."""
    await engine.dispose()
