"""
Database Configuration and Session Management
Async engine, session factory and transaction helpers
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
import structlog

from taskhub.core.config import settings, DATABASE_CONFIG

logger = structlog.get_logger()

database_url = settings.async_database_url

engine_kwargs = {
    "echo": settings.ENVIRONMENT == "development" and settings.DEBUG,
}

# Pool sizing and server settings only apply to PostgreSQL
if "postgresql" in database_url:
    engine_kwargs.update(DATABASE_CONFIG)
    engine_kwargs["connect_args"] = {
        "server_settings": {
            "application_name": "taskhub-api",
        }
    }

engine = create_async_engine(
    database_url,
    **engine_kwargs
)

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,  # Manual flush control
)

# Create declarative base
Base = declarative_base()


# Database dependency for FastAPI
async def get_db() -> AsyncIterator[AsyncSession]:
    """
    Database session dependency for FastAPI endpoints
    Ensures proper session cleanup and error handling
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except (Exception, asyncio.CancelledError):
            await session.rollback()
            raise


@asynccontextmanager
async def transaction(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Unit of work for a single logical operation.

    Commits when the block completes and rolls back on any error,
    including task cancellation, so no partial writes survive.
    """
    try:
        yield db
        await db.commit()
    except (Exception, asyncio.CancelledError):
        await db.rollback()
        raise


if engine.dialect.name == "sqlite":
    @event.listens_for(engine.sync_engine, "connect")
    def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        """SQLite leaves foreign key enforcement off per connection"""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Health check function
async def check_database_health() -> bool:
    """
    Check database connectivity and basic functionality
    Used by health check endpoints
    """
    try:
        async with engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return False


async def init_database():
    """
    Create tables for every registered model
    Called during application startup
    """
    try:
        async with engine.begin() as conn:
            # Import all models to ensure they're registered
            import taskhub.models  # noqa: F401

            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e))
        raise


async def close_database():
    """
    Close database connections
    Called during application shutdown
    """
    try:
        await engine.dispose()
        logger.info("Database connections closed")
    except Exception as e:
        logger.error("Error closing database connections", error=str(e))
