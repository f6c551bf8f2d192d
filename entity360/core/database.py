"""Pooled database handle with scoped session acquisition.

A ``Database`` is created once per process (or per test) and passed
explicitly to whoever needs persistence. Each unit of work acquires its own
session through ``Database.session()`` and releases it when the block exits.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from entity360.core.config import DatabaseSettings
from entity360.core.exceptions import DatabaseError
from entity360.database.base import Base
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


class Database:
    """PostgreSQL connection pool and session factory."""

    def __init__(self, engine: AsyncEngine):
        """Initialize database handle.

        Args:
            engine: SQLAlchemy async engine owning the connection pool
        """
        self.engine = engine
        self.session_maker = async_sessionmaker(
            engine, class_=AsyncSession, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Optional[DatabaseSettings] = None) -> "Database":
        """Build a pooled engine from database settings."""
        settings = settings or DatabaseSettings()
        engine = create_async_engine(
            settings.connection_url,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            echo=settings.echo,
            pool_pre_ping=True,
        )
        LOGGER.info(
            "Created database engine",
            extra={"pool_size": settings.pool_size, "max_overflow": settings.max_overflow},
        )
        return cls(engine)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Acquire a session for one unit of work.

        Rolls back on error and always returns the connection to the pool.

        Yields:
            AsyncSession: Database session
        """
        async with self.session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def create_tables(self) -> None:
        """Create all tables that don't exist yet."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            LOGGER.info("Database tables created/verified successfully")
        except SQLAlchemyError as e:
            LOGGER.error("Failed to create database tables", exc_info=True)
            raise DatabaseError("Failed to create database tables", original_error=e) from e

    async def drop_tables(self) -> None:
        """Drop all database tables.

        WARNING: This will delete all data!
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        LOGGER.warning("All database tables dropped")

    async def health_check(self) -> dict:
        """Check database health."""
        try:
            async with self.engine.connect() as conn:
                val = await conn.scalar(text("SELECT 1"))
            return {"status": "healthy", "connected": True, "latency_test": "passed" if val == 1 else "failed"}
        except SQLAlchemyError as e:
            LOGGER.error("Database health check failed", extra={"error": str(e)})
            return {"status": "unhealthy", "connected": False, "error": str(e)}

    async def dispose(self) -> None:
        """Close all pooled connections."""
        await self.engine.dispose()
        LOGGER.info("Database connection pool disposed")
