"""Existence checks for shared content."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Optional

from content_visibility.models.visibility import ContentReference


class ContentCatalog(ABC):
    """Answers whether a content reference points at an existing item."""

    @abstractmethod
    async def exists(self, ref: ContentReference) -> bool:
        """Return True if the referenced item exists."""


class InMemoryContentCatalog(ContentCatalog):
    """Catalog backed by a fixed set of references.

    With no references given every well-formed reference is treated as
    existing, which suits local development without a content database.
    """

    def __init__(self, refs: Optional[Iterable[ContentReference]] = None) -> None:
        self._refs: Optional[set[ContentReference]] = (
            set(refs) if refs is not None else None
        )

    def add(self, ref: ContentReference) -> None:
        if self._refs is None:
            self._refs = set()
        self._refs.add(ref)

    def remove(self, ref: ContentReference) -> None:
        if self._refs is not None:
            self._refs.discard(ref)

    async def exists(self, ref: ContentReference) -> bool:
        return self._refs is None or ref in self._refs
