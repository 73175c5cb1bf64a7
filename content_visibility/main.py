"""Main FastAPI application module."""

import os

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette import status

from content_visibility.api.v1.router import router as v1_router
from content_visibility.core.config import Settings
from content_visibility.core.events import create_lifespan
from content_visibility.core.logging import configure_logging
from content_visibility.middleware.correlation import CorrelationMiddleware
from content_visibility.middleware.errors import (
    ErrorHandlingMiddleware,
    register_exception_handlers,
)
from content_visibility.middleware.metrics import MetricsMiddleware
from content_visibility.middleware.security import SecurityHeadersMiddleware


def add_middleware(app: FastAPI, settings: Settings) -> None:
    """Install the middleware stack.

    Starlette wraps each added middleware around the previous ones, so the
    last one added is outermost:
    1. CORS (outermost)
    2. Security headers
    3. Correlation (adds request ID)
    4. Metrics (tracks all requests)
    5. Error handling (innermost - catches anything the routes raise)
    """
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID", settings.PRINCIPAL_HEADER],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application with middleware, error handlers and routes."""
    settings = settings or Settings()
    configure_logging(testing=os.getenv("TESTING") == "true")

    app = FastAPI(
        title=settings.app_name,
        description="Per-user hiding of shared cuisines and recipes",
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=JSONResponse,
        lifespan=create_lifespan(settings),
    )

    add_middleware(app, settings)
    register_exception_handlers(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", include_in_schema=False)
    async def root_redirect() -> Response:
        """Redirect root path to docs."""
        return RedirectResponse(
            url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT
        )

    app.include_router(v1_router, prefix=settings.api_prefix)
    return app


app = create_app()
