"""Engine, sessions and placement locks."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from timesheet_engine.config import get_settings

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

_TRY_LOCK = text("SELECT pg_try_advisory_lock(hashtext(:key))")
_UNLOCK = text("SELECT pg_advisory_unlock(hashtext(:key))")


def build_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine for the configured database.

    Pool sizing only applies to server databases; SQLite keeps its default pool.
    """
    url = database_url or get_settings().database_url
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=False)
    return create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db() -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Initialize the process-wide engine and session factory once."""
    global _engine, _session_factory
    if _engine is None:
        _engine = build_engine()
        _session_factory = build_session_factory(_engine)
    return _engine, _session_factory


async def dispose_db() -> None:
    """Close pooled connections and forget the process-wide engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table known to the ORM (development and tests)."""
    from timesheet_engine.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Session that commits on success and rolls back on error."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def acquire_placement_lock(conn: AsyncConnection, placement_id: UUID) -> bool:
    """Try to take the advisory lock for a placement without waiting."""
    result = await conn.execute(_TRY_LOCK, {"key": str(placement_id)})
    return bool(result.scalar())


async def release_placement_lock(conn: AsyncConnection, placement_id: UUID) -> None:
    await conn.execute(_UNLOCK, {"key": str(placement_id)})


@asynccontextmanager
async def placement_lock(placement_id: UUID) -> AsyncGenerator[bool, None]:
    """Hold a placement's advisory lock on a dedicated connection.

    Yields whether the lock was acquired. Session-level advisory locks belong
    to the connection, so it stays checked out until the block exits.
    """
    engine, _ = init_db()
    async with engine.connect() as conn:
        acquired = await acquire_placement_lock(conn, placement_id)
        try:
            yield acquired
        finally:
            if acquired:
                await release_placement_lock(conn, placement_id)
