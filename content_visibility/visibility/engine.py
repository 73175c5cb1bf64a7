"""Visibility engine: per-user hide/unhide state transitions.

Each (principal, content reference) pair is either VISIBLE (no stored record)
or HIDDEN. Hiding a hidden item is reported as ALREADY_HIDDEN so double
submissions surface; unhiding a visible item quietly succeeds so retries are
always safe. Store failures propagate as ``StoreUnavailableError`` and are never
retried here.
"""

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from content_visibility.core.logging import get_logger
from content_visibility.models.visibility import (
    ContentKind,
    ContentReference,
    StoreUnavailableError,
    VisibilityError,
    VisibilityErrorCode,
    VisibilityOutcome,
)
from content_visibility.visibility.catalog import ContentCatalog
from content_visibility.visibility.metrics import (
    VISIBILITY_OPERATIONS,
    VISIBILITY_STORE_FAILURES,
)
from content_visibility.visibility.store import VisibilityStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class VisibilityEngine:
    """Stateless coordinator over a visibility store and a content catalog.

    Safe to share between concurrent requests; all mutable state lives in the
    store.
    """

    def __init__(
        self,
        store: VisibilityStore,
        catalog: ContentCatalog,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.clock = clock

    @staticmethod
    def _require_principal(principal: Optional[str]) -> str:
        if not isinstance(principal, str) or not principal.strip():
            raise VisibilityError(
                VisibilityErrorCode.UNAUTHORIZED, "Authentication required"
            )
        return principal

    @contextmanager
    def _store_call(self, operation: str) -> Iterator[None]:
        try:
            yield
        except StoreUnavailableError as e:
            VISIBILITY_STORE_FAILURES.labels(operation=operation).inc()
            logger.error(
                "visibility_store_unavailable", operation=operation, error=str(e)
            )
            raise

    @staticmethod
    def _reject_hide(
        ref: ContentReference, code: VisibilityErrorCode, message: str
    ) -> VisibilityError:
        VISIBILITY_OPERATIONS.labels(
            operation="hide", kind=ref.kind.value, result=code.value
        ).inc()
        logger.info("content_hide_rejected", content=str(ref), code=code.value)
        return VisibilityError(code, message)

    async def hide(
        self, principal: Optional[str], ref: ContentReference
    ) -> VisibilityOutcome:
        """Hide ``ref`` for ``principal``.

        Raises:
            VisibilityError: UNAUTHORIZED without a principal, NOT_FOUND if the
                item does not exist, ALREADY_HIDDEN if it is hidden already
            StoreUnavailableError: If the store or catalog cannot be reached
        """
        principal = self._require_principal(principal)

        with self._store_call("hide"):
            if not await self.catalog.exists(ref):
                raise self._reject_hide(
                    ref,
                    VisibilityErrorCode.NOT_FOUND,
                    f"{ref.kind.value.capitalize()} not found",
                )

            hidden_at = self.clock()
            if not await self.store.mark_hidden(principal, ref, hidden_at):
                raise self._reject_hide(
                    ref,
                    VisibilityErrorCode.ALREADY_HIDDEN,
                    "Content is already hidden for this user",
                )

        VISIBILITY_OPERATIONS.labels(
            operation="hide", kind=ref.kind.value, result="hidden"
        ).inc()
        logger.info("content_hidden", content=str(ref))
        return VisibilityOutcome(
            ref=ref, action="hidden", changed=True, hidden_at=hidden_at
        )

    async def unhide(
        self, principal: Optional[str], ref: ContentReference
    ) -> VisibilityOutcome:
        """Make ``ref`` visible again for ``principal``.

        Unhiding an item that is not hidden succeeds with ``changed=False``.

        Raises:
            VisibilityError: UNAUTHORIZED without a principal
            StoreUnavailableError: If the store cannot be reached
        """
        principal = self._require_principal(principal)

        with self._store_call("unhide"):
            changed = await self.store.clear(principal, ref)

        VISIBILITY_OPERATIONS.labels(
            operation="unhide",
            kind=ref.kind.value,
            result="unhidden" if changed else "noop",
        ).inc()
        logger.info("content_unhidden", content=str(ref), changed=changed)
        return VisibilityOutcome(ref=ref, action="unhidden", changed=changed)

    async def is_hidden(self, principal: Optional[str], ref: ContentReference) -> bool:
        """Whether ``ref`` is hidden for ``principal``.

        Anonymous callers have nothing hidden.
        """
        if not isinstance(principal, str) or not principal.strip():
            return False

        with self._store_call("is_hidden"):
            record = await self.store.get(principal, ref)
        return record is not None and record.hidden

    async def hidden_ids(
        self, principal: Optional[str], kind: ContentKind
    ) -> list[int]:
        """Ids of ``kind`` hidden by ``principal``, newest first.

        Raises:
            VisibilityError: UNAUTHORIZED without a principal
        """
        principal = self._require_principal(principal)

        with self._store_call("hidden_ids"):
            records = await self.store.list_hidden(principal, kind)
        return [record.ref.id for record in records if record.hidden]

    async def filter_visible(
        self, principal: Optional[str], kind: ContentKind, ids: Iterable[int]
    ) -> list[int]:
        """Drop the ids ``principal`` has hidden, keeping input order."""
        ids = list(ids)
        if not isinstance(principal, str) or not principal.strip():
            return ids

        hidden = set(await self.hidden_ids(principal, kind))
        return [content_id for content_id in ids if content_id not in hidden]
