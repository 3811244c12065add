"""
Database Connection Management
Async SQLAlchemy with connection pooling
Source: https://docs.sqlalchemy.org/en/20/orm/extensions/asyncio.html
"""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from civicdesk.api.config import settings
from civicdesk.models.base import Base
from civicdesk.utils.logging import get_logger

logger = get_logger(__name__)


_engine: AsyncEngine | None = None
_async_session_maker: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """
    Get or create the global async engine.

    Returns:
        AsyncEngine instance
    """
    global _engine

    if _engine is None:
        url = settings.database_url
        logger.info(f"Creating database engine: {url.split('@')[-1]}")

        if settings.is_testing or url.startswith("sqlite"):
            # Pool sizing arguments are rejected by NullPool and by SQLite's pools
            _engine = create_async_engine(url, echo=settings.DEBUG, poolclass=NullPool)
        else:
            _engine = create_async_engine(
                url,
                echo=settings.DEBUG,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_pre_ping=True,
            )

        logger.info("Database engine created successfully")

    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the global session maker.

    Returns:
        Async session maker
    """
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting database sessions.

    Commits when the request handler returns normally and rolls back when
    it raises, so a failed registration never leaves a partial row.

    Yields:
        AsyncSession instance
    """
    session_maker = get_session_maker()

    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise


async def init_models() -> None:
    """Create missing tables. Only used when DB_CREATE_ALL is set."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def close_db_connection() -> None:
    """Close database connection pool."""
    global _engine, _async_session_maker

    if _engine is not None:
        logger.info("Closing database connection pool...")
        await _engine.dispose()
        _engine = None
        _async_session_maker = None
        logger.info("Database connection pool closed")


async def check_db_connection() -> bool:
    """
    Check if database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False
