"""Database connection management using async SQLAlchemy."""

import logging
from typing import Any, AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from workshop_enrollment_ms.shared.core.settings import get_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Global engine and session factory
_engine = None
_async_session_factory = None


async def init_db(database_url: str | None = None) -> None:
    """Initialize database connection."""
    global _engine, _async_session_factory

    settings = get_settings()
    url = database_url or settings.database_url

    engine_options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        engine_options.update(pool_size=5, max_overflow=10)

    _engine = create_async_engine(url, **engine_options)

    _async_session_factory = async_sessionmaker(
        bind=_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    if settings.auto_create_schema or url.startswith("sqlite"):
        # Registers every table on Base.metadata
        from workshop_enrollment_ms.shared.infrastructure.database import models  # noqa: F401

        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database connection initialized: {url.split('@')[-1]}")


async def close_db() -> None:
    """Close database connection."""
    global _engine, _async_session_factory

    if _engine:
        await _engine.dispose()
        _engine = None
        _async_session_factory = None
        logger.info("Database connection closed")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get async database session."""
    global _async_session_factory

    if _async_session_factory is None:
        await init_db()

    async with _async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# Type alias for dependency injection
DatabaseSession = AsyncSession
