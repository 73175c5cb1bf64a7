"""Visibility state store interface and in-process implementation."""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from content_visibility.models.visibility import (
    ContentKind,
    ContentReference,
    VisibilityRecord,
)

StoreKey = tuple[str, ContentKind, int]


class VisibilityStore(ABC):
    """Sparse mapping from (principal, content reference) to hidden state.

    Only hidden items occupy a record. ``mark_hidden`` and ``clear`` must each be
    atomic for a single key; different keys need no coordination.
    """

    @abstractmethod
    async def get(
        self, principal: str, ref: ContentReference
    ) -> Optional[VisibilityRecord]:
        """Return the stored record, or None if the item is visible."""

    @abstractmethod
    async def mark_hidden(
        self, principal: str, ref: ContentReference, hidden_at: datetime
    ) -> bool:
        """Hide the item unless it is already hidden.

        Returns:
            True if this call performed the transition, False if the item was
            already hidden (nothing written)
        """

    @abstractmethod
    async def clear(self, principal: str, ref: ContentReference) -> bool:
        """Remove any record for the key.

        Returns:
            True if an item was hidden before the call
        """

    @abstractmethod
    async def list_hidden(
        self, principal: str, kind: ContentKind
    ) -> Sequence[VisibilityRecord]:
        """Hidden records of one kind for a principal, newest first."""


class InMemoryVisibilityStore(VisibilityStore):
    """Process-local store for development and tests.

    Each key gets its own lock so a hide and a concurrent hide or unhide on the
    same key serialize, while unrelated keys proceed independently. A lock
    lives only while some call holds or waits on it.
    """

    def __init__(self) -> None:
        self._records: dict[StoreKey, VisibilityRecord] = {}
        self._locks: dict[StoreKey, asyncio.Lock] = {}
        self._lock_users: dict[StoreKey, int] = {}

    @staticmethod
    def _key(principal: str, ref: ContentReference) -> StoreKey:
        return (principal, ref.kind, ref.id)

    @asynccontextmanager
    async def _locked(self, key: StoreKey) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]

    async def get(
        self, principal: str, ref: ContentReference
    ) -> Optional[VisibilityRecord]:
        return self._records.get(self._key(principal, ref))

    async def mark_hidden(
        self, principal: str, ref: ContentReference, hidden_at: datetime
    ) -> bool:
        key = self._key(principal, ref)
        async with self._locked(key):
            existing = self._records.get(key)
            if existing is not None and existing.hidden:
                return False
            # Yield between read and write so the lock is what keeps this atomic
            await asyncio.sleep(0)
            self._records[key] = VisibilityRecord(
                principal=principal, ref=ref, hidden=True, hidden_at=hidden_at
            )
            return True

    async def clear(self, principal: str, ref: ContentReference) -> bool:
        key = self._key(principal, ref)
        async with self._locked(key):
            existing = self._records.pop(key, None)
            return existing is not None and existing.hidden

    async def list_hidden(
        self, principal: str, kind: ContentKind
    ) -> Sequence[VisibilityRecord]:
        records = [
            record
            for (owner, record_kind, _), record in self._records.items()
            if owner == principal and record_kind == kind and record.hidden
        ]
        return sorted(
            records,
            key=lambda record: (record.hidden_at, record.ref.id),
            reverse=True,
        )

    def __len__(self) -> int:
        return len(self._records)
