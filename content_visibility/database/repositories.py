"""Repository pattern for visibility persistence."""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from content_visibility.core.logging import get_logger
from content_visibility.models.visibility import (
    ContentKind,
    ContentReference,
    StoreUnavailableError,
    VisibilityRecord,
)
from content_visibility.visibility.catalog import ContentCatalog
from content_visibility.visibility.store import VisibilityStore

from .models import CONTENT_MODELS, HiddenContentModel

logger = get_logger(__name__)

# Content tables use 32-bit serial ids
MAX_CONTENT_TABLE_ID = 2**31 - 1


class BaseRepository:
    """Base repository running each operation in its own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session and transaction, translating driver failures.

        Raises:
            StoreUnavailableError: If the database cannot be reached or the
                statement fails
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "database_operation_failed",
                repository=type(self).__name__,
                error=str(e),
            )
            raise StoreUnavailableError(f"Database operation failed: {e}") from e


def _record_from_row(row: HiddenContentModel) -> VisibilityRecord:
    return VisibilityRecord(
        principal=row.principal_id,
        ref=ContentReference(kind=ContentKind(row.content_kind), id=row.content_id),
        hidden=bool(row.hidden),
        hidden_at=row.hidden_at,
    )


def _key_filter(principal: str, ref: ContentReference) -> tuple:
    return (
        HiddenContentModel.principal_id == principal,
        HiddenContentModel.content_kind == ref.kind.value,
        HiddenContentModel.content_id == ref.id,
    )


class SQLVisibilityStore(BaseRepository, VisibilityStore):
    """PostgreSQL-backed visibility store over the ``hidden_content`` table."""

    async def get(
        self, principal: str, ref: ContentReference
    ) -> Optional[VisibilityRecord]:
        """Get the record for one key."""
        query = select(HiddenContentModel).filter(*_key_filter(principal, ref))
        async with self.transaction() as session:
            result = await session.execute(query)
            row = result.scalar_one_or_none()
        return _record_from_row(row) if row is not None else None

    async def mark_hidden(
        self, principal: str, ref: ContentReference, hidden_at: datetime
    ) -> bool:
        """Insert a hidden row, or flip a stale ``hidden = false`` row.

        A single upsert: the conflict branch only fires for rows that are not
        hidden, so RETURNING yields nothing when the item was already hidden.
        """
        stmt = pg_insert(HiddenContentModel).values(
            principal_id=principal,
            content_kind=ref.kind.value,
            content_id=ref.id,
            hidden=True,
            hidden_at=hidden_at,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                HiddenContentModel.principal_id,
                HiddenContentModel.content_kind,
                HiddenContentModel.content_id,
            ],
            set_={"hidden": True, "hidden_at": stmt.excluded.hidden_at},
            where=HiddenContentModel.hidden.is_(False),
        ).returning(HiddenContentModel.content_id)

        async with self.transaction() as session:
            result = await session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def clear(self, principal: str, ref: ContentReference) -> bool:
        """Delete the row for one key."""
        stmt = (
            delete(HiddenContentModel)
            .where(*_key_filter(principal, ref))
            .returning(HiddenContentModel.hidden)
        )
        async with self.transaction() as session:
            result = await session.execute(stmt)
            return bool(result.scalar_one_or_none())

    async def list_hidden(
        self, principal: str, kind: ContentKind
    ) -> Sequence[VisibilityRecord]:
        """Get hidden rows of one kind, newest first."""
        query = (
            select(HiddenContentModel)
            .filter(
                HiddenContentModel.principal_id == principal,
                HiddenContentModel.content_kind == kind.value,
                HiddenContentModel.hidden.is_(True),
            )
            .order_by(
                HiddenContentModel.hidden_at.desc(),
                HiddenContentModel.content_id.desc(),
            )
        )
        async with self.transaction() as session:
            result = await session.execute(query)
            rows = result.scalars().all()
        return [_record_from_row(row) for row in rows]


class SQLContentCatalog(BaseRepository, ContentCatalog):
    """Checks content existence against the cuisine and recipe tables."""

    async def exists(self, ref: ContentReference) -> bool:
        if ref.id > MAX_CONTENT_TABLE_ID:
            return False

        model = CONTENT_MODELS[ref.kind]
        query = select(model.id).filter(model.id == ref.id)
        async with self.transaction() as session:
            result = await session.execute(query)
            return result.scalar_one_or_none() is not None
