"""Redis read-through cache in front of a visibility store."""

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Optional, Protocol

from redis.exceptions import RedisError

from content_visibility.core.logging import get_logger
from content_visibility.models.visibility import (
    ContentKind,
    ContentReference,
    StoreUnavailableError,
    VisibilityRecord,
)
from content_visibility.visibility.metrics import VISIBILITY_CACHE_LOOKUPS
from content_visibility.visibility.store import VisibilityStore

logger = get_logger(__name__)

# Cached value for "no record"; visible items are cached too
_VISIBLE = b"visible"


class CacheClient(Protocol):
    """Subset of ``redis.asyncio.Redis`` used by the cache."""

    async def get(self, name: str) -> Optional[bytes]: ...

    async def set(
        self,
        name: str,
        value: Any,
        ex: Optional[int] = None,
        nx: bool = False,
    ) -> Any: ...


class CachedVisibilityStore(VisibilityStore):
    """Caches ``get`` lookups; every write stores the new state for its key.

    Writes overwrite the cached value after the wrapped store commits. Fills
    after a miss use ``SET NX``, so a fill that read the store before a
    concurrent write can never replace the value that write cached.

    A failed cache read falls through to the wrapped store. A failed write to
    the cache raises ``StoreUnavailableError`` since the cache could then
    serve a stale state for up to ``ttl_seconds``.
    """

    def __init__(
        self,
        inner: VisibilityStore,
        redis: CacheClient,
        ttl_seconds: int = 300,
        key_prefix: str = "visibility:",
    ) -> None:
        self.inner = inner
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def cache_key(self, principal: str, ref: ContentReference) -> str:
        return f"{self.key_prefix}{ref.kind.value}:{ref.id}:{principal}"

    @staticmethod
    def _encode(record: Optional[VisibilityRecord]) -> bytes:
        if record is None or not record.hidden:
            return _VISIBLE
        return json.dumps(
            {
                "hidden": True,
                "hidden_at": record.hidden_at.isoformat() if record.hidden_at else None,
            }
        ).encode("utf-8")

    @staticmethod
    def _decode(
        raw: bytes, principal: str, ref: ContentReference
    ) -> Optional[VisibilityRecord]:
        if raw == _VISIBLE:
            return None
        data = json.loads(raw)
        hidden_at = data.get("hidden_at")
        return VisibilityRecord(
            principal=principal,
            ref=ref,
            hidden=bool(data.get("hidden")),
            hidden_at=datetime.fromisoformat(hidden_at) if hidden_at else None,
        )

    def _expiry(self) -> Optional[int]:
        return self.ttl_seconds or None

    async def _store_state(
        self,
        principal: str,
        ref: ContentReference,
        record: Optional[VisibilityRecord],
    ) -> None:
        key = self.cache_key(principal, ref)
        try:
            await self.redis.set(key, self._encode(record), ex=self._expiry())
        except RedisError as e:
            logger.error("visibility_cache_update_failed", key=key, error=str(e))
            raise StoreUnavailableError(f"Cache update failed: {e}") from e

    async def get(
        self, principal: str, ref: ContentReference
    ) -> Optional[VisibilityRecord]:
        key = self.cache_key(principal, ref)
        try:
            raw = await self.redis.get(key)
        except RedisError as e:
            VISIBILITY_CACHE_LOOKUPS.labels(result="error").inc()
            logger.warning("visibility_cache_read_failed", key=key, error=str(e))
            return await self.inner.get(principal, ref)

        if raw is not None:
            VISIBILITY_CACHE_LOOKUPS.labels(result="hit").inc()
            return self._decode(raw, principal, ref)

        VISIBILITY_CACHE_LOOKUPS.labels(result="miss").inc()
        record = await self.inner.get(principal, ref)
        try:
            await self.redis.set(key, self._encode(record), ex=self._expiry(), nx=True)
        except RedisError as e:
            logger.warning("visibility_cache_fill_failed", key=key, error=str(e))
        return record

    async def mark_hidden(
        self, principal: str, ref: ContentReference, hidden_at: datetime
    ) -> bool:
        changed = await self.inner.mark_hidden(principal, ref, hidden_at)
        if changed:
            record: Optional[VisibilityRecord] = VisibilityRecord(
                principal=principal, ref=ref, hidden=True, hidden_at=hidden_at
            )
        else:
            record = await self.inner.get(principal, ref)
        await self._store_state(principal, ref, record)
        return changed

    async def clear(self, principal: str, ref: ContentReference) -> bool:
        changed = await self.inner.clear(principal, ref)
        await self._store_state(principal, ref, None)
        return changed

    async def list_hidden(
        self, principal: str, kind: ContentKind
    ) -> Sequence[VisibilityRecord]:
        return await self.inner.list_hidden(principal, kind)
