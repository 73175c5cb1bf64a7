"""Per-user content visibility core."""

from .catalog import ContentCatalog, InMemoryContentCatalog
from .engine import VisibilityEngine
from .store import InMemoryVisibilityStore, VisibilityStore
from .validator import validate

__all__ = [
    "ContentCatalog",
    "InMemoryContentCatalog",
    "InMemoryVisibilityStore",
    "VisibilityEngine",
    "VisibilityStore",
    "validate",
]
