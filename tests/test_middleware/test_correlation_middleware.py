"""Correlation ID middleware tests."""

from typing import AsyncGenerator
from uuid import UUID, uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient
from pytest import fixture, mark
from pytest_asyncio import fixture as asyncio_fixture
from structlog.contextvars import get_contextvars

from content_visibility.middleware.correlation import (
    CorrelationMiddleware,
    is_valid_correlation_id,
)


@fixture
def correlation_app() -> FastAPI:
    """Get test application with correlation ID middleware."""
    app = FastAPI()

    @app.get("/test")
    async def test_endpoint(request: Request) -> JSONResponse:
        """Return the correlation ID seen by the route."""
        return JSONResponse(
            {
                "correlation_id": request.state.correlation_id,
                "log_context": get_contextvars().get("correlation_id"),
            }
        )

    app.add_middleware(CorrelationMiddleware)
    return app


@asyncio_fixture
async def correlation_client(
    correlation_app: FastAPI,
) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=correlation_app), base_url="http://test"
    ) as client:
        yield client


@mark.asyncio
async def test_correlation_id_generation(correlation_client: AsyncClient) -> None:
    """Test correlation ID is generated when not provided."""
    response = await correlation_client.get("/test")

    correlation_id = response.headers["X-Request-ID"]
    assert UUID(correlation_id)
    assert response.json()["correlation_id"] == correlation_id
    assert response.json()["log_context"] == correlation_id


@mark.asyncio
async def test_client_uuid_is_kept(correlation_client: AsyncClient) -> None:
    supplied = str(uuid4())

    response = await correlation_client.get(
        "/test", headers={"X-Request-ID": supplied}
    )

    assert response.headers["X-Request-ID"] == supplied


@mark.asyncio
async def test_invalid_client_id_is_replaced(correlation_client: AsyncClient) -> None:
    response = await correlation_client.get(
        "/test", headers={"X-Request-ID": "<script>"}
    )

    assert response.headers["X-Request-ID"] != "<script>"
    assert UUID(response.headers["X-Request-ID"])


@mark.parametrize(
    "value,expected",
    [
        (str(uuid4()), True),
        ("test-123", True),
        ("", False),
        (None, False),
        ("not-a-uuid", False),
    ],
)
def test_is_valid_correlation_id(value, expected) -> None:
    assert is_valid_correlation_id(value) is expected
