"""Test fixture package for content visibility.

Contains fixtures for:
- Visibility engine with in-memory store and catalog
- FastAPI test application and async client
"""

from .api import test_app, test_app_async_client
from .visibility import (
    catalog,
    engine,
    fixed_clock,
    store,
)

__all__ = [
    # Visibility
    "catalog",
    "engine",
    "fixed_clock",
    "store",
    # API
    "test_app",
    "test_app_async_client",
]
