"""
Database session management for async SQLAlchemy operations.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlmodel import SQLModel

from ..config.settings import settings

logger = logging.getLogger(__name__)


# Create async engine with connection pooling
engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_size=5,
    max_overflow=10,
    pool_pre_ping=True,   # Detect stale connections before use
    pool_recycle=3600,    # Recycle connections every hour
    pool_timeout=30,      # Wait max 30s for connection from pool
    connect_args={
        "command_timeout": 30,  # Timeout for individual queries (asyncpg)
        "server_settings": {
            "statement_timeout": "30000",  # PostgreSQL statement timeout (ms)
        },
    },
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db():
    """Initialize database tables (and the pgvector extension on PostgreSQL)."""
    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(SQLModel.metadata.create_all)


async def close_db():
    """Close database connections."""
    await engine.dispose()


def get_pool_status() -> dict:
    """Report connection pool usage for the health endpoint."""
    pool = engine.pool
    return {
        "pool_size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session.

    Commits on clean exit and rolls back on error. Stage code that needs
    per-record durability commits through SQLDealStore instead.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            logger.error(f"Database session error, rolling back: {e}")
            await session.rollback()
            raise
