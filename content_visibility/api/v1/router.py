"""API v1 router module."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from content_visibility.api.v1.visibility import router as visibility_router
from content_visibility.core import db
from content_visibility.core.config import settings
from content_visibility.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(default_response_class=JSONResponse)

router.include_router(visibility_router)


@router.get("/")
async def get_api_metadata() -> dict[str, str]:
    """
    Get API metadata.

    Returns
    -------
        Dict containing API metadata
    """
    return {
        "version": settings.version,
        "openapi_url": "/openapi.json",
        "documentation_url": "/docs",
        "api_status": "healthy",
        "implementation": settings.app_name,
    }


# Health check endpoints


@router.get("/health")
async def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint.

    Returns
    -------
        Dict containing health status information
    """
    return {
        "status": "healthy",
        "version": settings.version,
        "backend": settings.VISIBILITY_BACKEND,
        "correlation_id": request.state.correlation_id,
    }


@router.get("/health/redis")
async def redis_health_check(request: Request) -> dict[str, str]:
    """
    Redis health check endpoint for the visibility cache.

    Returns
    -------
        Dict containing Redis health status information
    """
    redis = getattr(request.app.state, "redis", None)
    if redis is None:
        return {
            "status": "disabled",
            "correlation_id": request.state.correlation_id,
        }

    try:
        await redis.ping()
        info = await redis.info()
        return {
            "status": "healthy",
            "redis_version": str(info["redis_version"]),
            "connected_clients": str(info["connected_clients"]),
            "correlation_id": request.state.correlation_id,
        }
    except Exception as e:
        logger.error("redis_health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "correlation_id": request.state.correlation_id,
        }


@router.get("/health/db")
async def db_health_check(request: Request) -> dict[str, str]:
    """
    Database health check endpoint.

    Returns
    -------
        Dict containing database health status information
    """
    if settings.VISIBILITY_BACKEND != "database":
        return {
            "status": "disabled",
            "correlation_id": request.state.correlation_id,
        }

    try:
        session_factory = db.get_session_factory()
        async with session_factory() as session:
            result = await session.execute(text("SELECT version()"))
            version = result.scalar_one()
        return {
            "status": "healthy",
            "database": "postgresql",
            "version": str(version),
            "correlation_id": request.state.correlation_id,
        }
    except Exception as e:
        logger.error("database_health_check_failed", error=str(e))
        return {
            "status": "unhealthy",
            "correlation_id": request.state.correlation_id,
        }
