"""
Database setup for the durable snapshot backend.

The engine is created on first use so the service runs without a database
when the cache backend is selected.

Usage:
    from numberland.core.database import get_session_factory

    async with get_session_factory()() as session:
        result = await session.execute(...)
"""

from typing import AsyncGenerator, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from numberland.core.config import settings

logger = structlog.get_logger()

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker] = None


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def get_engine() -> AsyncEngine:
    """Get the async engine, creating it from DATABASE_URL on first call."""
    global _engine

    if _engine is None:
        if not settings.DATABASE_URL:
            raise RuntimeError("DATABASE_URL must be set for the database snapshot backend")

        _engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=True,
        )
        logger.info("Database engine created")

    return _engine


def get_session_factory() -> async_sessionmaker:
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )

    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session that commits on success."""
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create tables that don't exist yet.

    Called on startup when the database backend is selected.
    """
    # Registers the snapshot table with Base.metadata
    from numberland.models import snapshot_record  # noqa: F401

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Database tables initialized")
