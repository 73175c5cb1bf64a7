"""Shared FastAPI dependencies for v1 endpoints."""

from typing import Optional

from fastapi import Request

from content_visibility.core.config import settings
from content_visibility.visibility.engine import VisibilityEngine


def get_principal(request: Request) -> Optional[str]:
    """Resolve the caller's principal from the trusted identity header.

    Session handling lives upstream: the gateway authenticates the user and
    forwards an opaque id. A missing or blank header means unauthenticated.
    Deployments with a different identity source override this dependency.
    """
    value = request.headers.get(settings.PRINCIPAL_HEADER)
    if value is None or not value.strip():
        return None
    return value.strip()


def get_visibility_engine(request: Request) -> VisibilityEngine:
    """Return the engine built once at startup.

    Raises:
        RuntimeError: If the application started without an engine
    """
    engine = getattr(request.app.state, "visibility_engine", None)
    if engine is None:
        raise RuntimeError("Visibility engine not initialized")
    return engine
