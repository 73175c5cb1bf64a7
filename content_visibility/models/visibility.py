"""Domain types for per-user content visibility."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

# Largest id the persistence layer can hold (BIGINT)
MAX_CONTENT_ID = 2**63 - 1


class ContentKind(str, Enum):
    """Kinds of shared content a user can hide."""

    CUISINE = "cuisine"
    RECIPE = "recipe"


class VisibilityErrorCode(str, Enum):
    """Closed set of domain failures raised by the visibility engine."""

    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    ALREADY_HIDDEN = "ALREADY_HIDDEN"
    INVALID_INPUT = "INVALID_INPUT"


class VisibilityError(Exception):
    """Domain failure with a code from ``VisibilityErrorCode``."""

    def __init__(self, code: VisibilityErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"VisibilityError(code={self.code.value!r}, message={self.message!r})"


class StoreUnavailableError(Exception):
    """Visibility state could not be read or written.

    Covers timeouts and connectivity loss in the database or cache. The message
    may contain internal detail and must not be returned to callers.
    """


@dataclass(frozen=True)
class ContentReference:
    """Typed pointer to one shared content item."""

    kind: ContentKind
    id: int

    def __post_init__(self) -> None:
        if not isinstance(self.kind, ContentKind):
            raise VisibilityError(
                VisibilityErrorCode.INVALID_INPUT,
                f"Unknown content kind: {self.kind!r}",
            )
        # bool is an int subclass; True must not pass as id 1
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise VisibilityError(
                VisibilityErrorCode.INVALID_INPUT, "Content id must be an integer"
            )
        if not 1 <= self.id <= MAX_CONTENT_ID:
            raise VisibilityError(
                VisibilityErrorCode.INVALID_INPUT,
                f"Content id must be a positive integer, got {self.id}",
            )

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass(frozen=True)
class VisibilityRecord:
    """Stored hidden state for one (principal, content reference) pair.

    Absence of a record means the item is visible.
    """

    principal: str
    ref: ContentReference
    hidden: bool
    hidden_at: Optional[datetime] = None


@dataclass(frozen=True)
class VisibilityOutcome:
    """Successful result of a hide or unhide call."""

    ref: ContentReference
    action: str  # "hidden" or "unhidden"
    changed: bool
    hidden_at: Optional[datetime] = None

    @property
    def kind(self) -> ContentKind:
        return self.ref.kind
