"""Application startup and shutdown events."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, Optional

from redis.asyncio.client import Redis as AsyncRedis
from redis.exceptions import ConnectionError, TimeoutError

from content_visibility.core import db
from content_visibility.core.config import Settings, settings
from content_visibility.database.repositories import (
    SQLContentCatalog,
    SQLVisibilityStore,
)
from content_visibility.visibility.cache import CachedVisibilityStore
from content_visibility.visibility.catalog import ContentCatalog, InMemoryContentCatalog
from content_visibility.visibility.engine import VisibilityEngine
from content_visibility.visibility.store import InMemoryVisibilityStore, VisibilityStore

logger: logging.Logger = logging.getLogger("content_visibility.core.events")


class CacheInitError(Exception):
    """Raised when the visibility cache cannot connect to Redis."""


async def create_redis_pool(
    config: Settings = settings,
    max_retries: int = 3,
    retry_delay: float = 1.0,
) -> AsyncRedis:
    """Create Redis connection pool with retry logic.

    Returns:
        Redis connection pool

    Raises:
        CacheInitError: If connection cannot be established after retries
    """
    for attempt in range(max_retries):
        try:
            pool = AsyncRedis.from_url(
                config.REDIS_URL,
                encoding="utf-8",
                decode_responses=False,
                max_connections=config.REDIS_POOL_SIZE,
                health_check_interval=15,
            )
            await pool.ping()
            logger.info(
                f"Redis pool initialized - Size: {config.REDIS_POOL_SIZE}, "
                f"Health check interval: 15s"
            )
            return pool
        except (ConnectionError, TimeoutError) as e:
            if attempt == max_retries - 1:
                raise CacheInitError(f"Failed to initialize Redis pool: {e}") from e
            logger.warning(
                f"Redis connection attempt {attempt + 1}/{max_retries} "
                f"failed: {e}. Retrying in {retry_delay}s..."
            )
            await asyncio.sleep(retry_delay)

    raise CacheInitError("Failed to initialize Redis pool: no attempts made")


def build_engine(
    config: Settings = settings, redis: Optional[AsyncRedis] = None
) -> VisibilityEngine:
    """Wire the visibility engine for the configured backend.

    Args:
        config: Application settings
        redis: Connected Redis client; required when the cache is enabled

    Returns:
        Engine with its store and catalog collaborators
    """
    store: VisibilityStore
    catalog: ContentCatalog
    if config.VISIBILITY_BACKEND == "memory":
        store = InMemoryVisibilityStore()
        catalog = InMemoryContentCatalog()
    else:
        session_factory = db.get_session_factory()
        store = SQLVisibilityStore(session_factory)
        catalog = SQLContentCatalog(session_factory)

    if config.VISIBILITY_CACHE_ENABLED:
        if redis is None:
            raise CacheInitError("Visibility cache enabled but no Redis client given")
        store = CachedVisibilityStore(
            store, redis, ttl_seconds=config.VISIBILITY_CACHE_TTL_SECONDS
        )

    return VisibilityEngine(store=store, catalog=catalog)


def create_start_app_handler(
    app: Any, config: Settings = settings
) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Startup handler function
    """

    async def start_app() -> None:
        redis: Optional[AsyncRedis] = None
        if config.VISIBILITY_CACHE_ENABLED:
            redis = await create_redis_pool(config)

        app.state.redis = redis
        app.state.visibility_engine = build_engine(config, redis)

        logger.info(
            "Application startup complete - "
            f"Backend: {config.VISIBILITY_BACKEND}, "
            f"Cache: {'enabled' if redis is not None else 'disabled'}"
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        try:
            redis = getattr(app.state, "redis", None)
            if redis is not None:
                logger.info("Closing Redis connections...")
                await redis.aclose()
                app.state.redis = None
                logger.info("Redis connections closed")

            await db.dispose_engine()
            logger.info("Application shutdown complete")
        except Exception as e:
            logger.error(f"Error during shutdown: {e}")
            raise

    return stop_app


def create_lifespan(
    config: Settings = settings,
) -> Callable[[Any], AbstractAsyncContextManager[None]]:
    """Create the application lifespan running the startup and shutdown handlers.

    Args:
        config: Application settings

    Returns:
        Lifespan context manager factory for ``FastAPI(lifespan=...)``
    """

    @asynccontextmanager
    async def lifespan(app: Any) -> AsyncIterator[None]:
        await create_start_app_handler(app, config)()
        try:
            yield
        finally:
            await create_stop_app_handler(app)()

    return lifespan
