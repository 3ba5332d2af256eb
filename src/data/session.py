"""
Async engine and session lifecycle for room persistence.

init_db() is called once from the FastAPI lifespan when persistence is
enabled; repositories obtain sessions through session_scope().
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from data.config import DatabaseSettings, get_settings
from data.models import Base

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_async_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Raises:
        RuntimeError: If init_db() has not been called
    """
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call init_db() first.")
    return _engine


async def init_db(settings: DatabaseSettings | None = None) -> None:
    """
    Create the engine and session factory.

    Args:
        settings: Explicit settings (tests); defaults to the cached environment settings
    """
    global _engine, _async_session_factory

    settings = settings or get_settings()
    logger.info(f"Initializing database connection: {settings.database_url.split('@')[-1]}")

    _engine = create_async_engine(settings.database_url, **settings.get_engine_kwargs())
    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_db() -> None:
    """Dispose the engine. Safe to call when nothing was initialized."""
    global _engine, _async_session_factory

    if _engine is not None:
        logger.info("Closing database connection")
        await _engine.dispose()
    _engine = None
    _async_session_factory = None


async def create_tables() -> None:
    """Create all tables (development and tests; production uses managed schemas)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables created")


async def drop_tables() -> None:
    """Drop all tables. Destructive, tests only."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.warning("Tables dropped")


@asynccontextmanager
async def session_scope() -> AsyncGenerator[AsyncSession, None]:
    """
    Transactional session.

        async with session_scope() as session:
            repo = RoomRepository(session)
            ...

    Commits on success, rolls back on exception.
    """
    if _async_session_factory is None:
        raise RuntimeError("Session factory not initialized. Call init_db() first.")

    async with _async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
