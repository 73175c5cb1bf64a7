"""Validation of raw content kind and id input."""

import re

from content_visibility.models.visibility import (
    MAX_CONTENT_ID,
    ContentKind,
    ContentReference,
    VisibilityError,
    VisibilityErrorCode,
)

# ASCII digits only; str.isdigit() would accept characters int() rejects
_ID_PATTERN = re.compile(r"[0-9]+")

KNOWN_KINDS = frozenset(kind.value for kind in ContentKind)


def parse_kind(kind_raw: str) -> ContentKind:
    """Normalize a raw kind tag into a ``ContentKind``.

    Raises:
        VisibilityError: INVALID_INPUT if the tag is not a known kind
    """
    normalized = (kind_raw or "").strip().lower()
    if normalized not in KNOWN_KINDS:
        raise VisibilityError(
            VisibilityErrorCode.INVALID_INPUT,
            f"Unknown content kind '{kind_raw}'. "
            f"Expected one of: {', '.join(sorted(KNOWN_KINDS))}",
        )
    return ContentKind(normalized)


def parse_content_id(id_raw: str) -> int:
    """Parse a raw id as a base-10 integer >= 1 with nothing left over.

    Raises:
        VisibilityError: INVALID_INPUT for anything else
    """
    if id_raw is None or not _ID_PATTERN.fullmatch(id_raw):
        raise VisibilityError(
            VisibilityErrorCode.INVALID_INPUT,
            f"Invalid content id '{id_raw}'",
        )
    value = int(id_raw, 10)
    if value < 1 or value > MAX_CONTENT_ID:
        raise VisibilityError(
            VisibilityErrorCode.INVALID_INPUT,
            f"Content id out of range: {id_raw}",
        )
    return value


def validate(kind_raw: str, id_raw: str) -> ContentReference:
    """Turn raw transport input into a ``ContentReference``.

    Args:
        kind_raw: Content kind tag, e.g. ``"recipe"``
        id_raw: Decimal id as received, e.g. ``"42"``

    Returns:
        The validated reference

    Raises:
        VisibilityError: INVALID_INPUT if either part is malformed
    """
    return ContentReference(kind=parse_kind(kind_raw), id=parse_content_id(id_raw))
