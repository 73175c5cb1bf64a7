"""Error handling middleware."""

from http import HTTPStatus
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)
from starlette.types import ASGIApp

from content_visibility.core.logging import get_logger
from content_visibility.models.visibility import (
    StoreUnavailableError,
    VisibilityError,
    VisibilityErrorCode,
)

logger = get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

# Every domain error code must have a status; checked at import below
STATUS_BY_CODE: dict[VisibilityErrorCode, int] = {
    VisibilityErrorCode.NOT_FOUND: HTTP_404_NOT_FOUND,
    VisibilityErrorCode.UNAUTHORIZED: HTTP_401_UNAUTHORIZED,
    VisibilityErrorCode.ALREADY_HIDDEN: HTTP_400_BAD_REQUEST,
    VisibilityErrorCode.INVALID_INPUT: HTTP_400_BAD_REQUEST,
}

_unmapped = set(VisibilityErrorCode) - set(STATUS_BY_CODE)
if _unmapped:
    raise RuntimeError(
        "No HTTP status mapped for visibility error codes: "
        + ", ".join(sorted(code.value for code in _unmapped))
    )


def _correlation_id(request: Request) -> Optional[str]:
    correlation_id = getattr(request.state, "correlation_id", None)
    return str(correlation_id) if correlation_id is not None else None


def error_response(
    request: Request,
    status_code: int,
    message: str,
    code: Optional[VisibilityErrorCode] = None,
) -> JSONResponse:
    """Build the shared error envelope.

    Args:
    ----
        request: The request being answered
        status_code: HTTP status to send
        message: Caller-safe message
        code: Domain error code, omitted for non-domain failures

    Returns:
    -------
        A JSON response with ``message``, ``type`` and optionally ``code``
    """
    correlation_id = _correlation_id(request)
    content: dict[str, object] = {"message": message, "type": "error"}
    if code is not None:
        content["code"] = code.value
    content["correlation_id"] = correlation_id if correlation_id else "unknown"

    response = JSONResponse(
        status_code=status_code, content=content, media_type="application/json"
    )
    if correlation_id:
        response.headers["X-Request-ID"] = correlation_id
    return response


async def handle_visibility_error(
    request: Request, exc: VisibilityError
) -> JSONResponse:
    """Map a domain error onto its status code."""
    status_code = STATUS_BY_CODE[exc.code]
    logger.info(
        "visibility_request_rejected",
        code=exc.code.value,
        status_code=status_code,
        path=request.url.path,
        method=request.method,
    )
    return error_response(request, status_code, exc.message, exc.code)


async def handle_store_unavailable(request: Request, exc: Exception) -> JSONResponse:
    """Log infrastructure detail and return a generic 500."""
    logger.error(
        "request_error",
        error_type=exc.__class__.__name__,
        error_message=str(exc),
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        request, HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    response = error_response(request, exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report request validation failures with the envelope."""
    return error_response(
        request, HTTPStatus.UNPROCESSABLE_ENTITY, "Request validation failed"
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope handlers on a FastAPI application."""
    app.add_exception_handler(VisibilityError, handle_visibility_error)
    app.add_exception_handler(StoreUnavailableError, handle_store_unavailable)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware turning unhandled exceptions into a generic 500 envelope."""

    def __init__(self, app: ASGIApp) -> None:
        """
        Initialize middleware.

        Args:
        ----
            app: The ASGI application
        """
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            logger.error(
                "request_error",
                error_type=exc.__class__.__name__,
                error_message=str(exc),
                status_code=HTTP_500_INTERNAL_SERVER_ERROR,
                path=request.url.path,
                method=request.method,
                exc_info=True,
            )
            return error_response(
                request, HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE
            )
