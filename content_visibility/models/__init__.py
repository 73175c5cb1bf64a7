"""Domain and response models."""

from .visibility import (
    ContentKind,
    ContentReference,
    StoreUnavailableError,
    VisibilityError,
    VisibilityErrorCode,
    VisibilityOutcome,
    VisibilityRecord,
)

__all__ = [
    "ContentKind",
    "ContentReference",
    "StoreUnavailableError",
    "VisibilityError",
    "VisibilityErrorCode",
    "VisibilityOutcome",
    "VisibilityRecord",
]
