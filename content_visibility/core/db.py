"""Database connection and session management."""

import os

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from content_visibility.core.config import settings

# Lazy database initialization - don't create engine at import time
engine: AsyncEngine | None = None
async_session_factory: async_sessionmaker[AsyncSession] | None = None


def to_async_url(database_url: str) -> str:
    """Rewrite a PostgreSQL URL to use the asyncpg driver."""
    if database_url.startswith("postgresql+psycopg2://"):
        return database_url.replace(
            "postgresql+psycopg2://", "postgresql+asyncpg://", 1
        )
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    return database_url


def _initialize_database() -> None:
    """Initialize database engine and session factory."""
    global engine, async_session_factory

    if engine is not None:
        return  # Already initialized

    if os.getenv("TESTING") == "true":
        # Keep as None for testing - will be overridden in test fixtures
        return

    engine = create_async_engine(
        to_async_url(settings.DATABASE_URL),
        pool_size=settings.MAX_CONNECTIONS,
        max_overflow=0,
        pool_pre_ping=True,
        echo=False,
    )

    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the process-wide session factory.

    Raises:
        RuntimeError: If the database cannot be initialized
    """
    _initialize_database()

    if async_session_factory is None:
        raise RuntimeError("Database not initialized - cannot create session")
    return async_session_factory


async def dispose_engine() -> None:
    """Dispose of the engine and forget the session factory."""
    global engine, async_session_factory

    if engine is not None:
        await engine.dispose()
    engine = None
    async_session_factory = None
