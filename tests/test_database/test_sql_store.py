"""Tests for the SQL visibility store and content catalog."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import OperationalError

from content_visibility.database.models import HiddenContentModel
from content_visibility.database.repositories import (
    MAX_CONTENT_TABLE_ID,
    SQLContentCatalog,
    SQLVisibilityStore,
)
from content_visibility.models.visibility import (
    ContentKind,
    ContentReference,
    StoreUnavailableError,
)

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
RECIPE_7 = ContentReference(ContentKind.RECIPE, 7)


def compiled_sql(statement, literal_binds: bool = True) -> str:
    """Render a statement for PostgreSQL, inlining parameters by default."""
    return str(
        statement.compile(
            dialect=postgresql.dialect(),
            compile_kwargs={"literal_binds": literal_binds},
        )
    )


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock database session."""
    session = MagicMock()
    mock_result = MagicMock()
    session.execute = AsyncMock(return_value=mock_result)
    transaction = session.begin.return_value
    transaction.__aenter__.return_value = session
    transaction.__aexit__.return_value = False
    return session


@pytest.fixture
def session_factory(mock_session: MagicMock) -> MagicMock:
    """Create a session factory yielding the mock session."""
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = mock_session
    factory.return_value.__aexit__.return_value = False
    return factory


@pytest.fixture
def sql_store(session_factory: MagicMock) -> SQLVisibilityStore:
    return SQLVisibilityStore(session_factory)


def executed_statement(mock_session: MagicMock):
    return mock_session.execute.await_args.args[0]


class TestSQLVisibilityStore:
    """Test cases for SQLVisibilityStore."""

    @pytest.mark.asyncio
    async def test_mark_hidden_uses_conditional_upsert(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        mock_session.execute.return_value.scalar_one_or_none.return_value = 7

        assert await sql_store.mark_hidden("u1", RECIPE_7, T0) is True

        sql = compiled_sql(executed_statement(mock_session), literal_binds=False)
        assert "INSERT INTO hidden_content" in sql
        assert "ON CONFLICT (principal_id, content_kind, content_id)" in sql
        assert "DO UPDATE SET" in sql
        assert "hidden_content.hidden IS false" in sql
        assert "RETURNING hidden_content.content_id" in sql

    @pytest.mark.asyncio
    async def test_mark_hidden_reports_already_hidden(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        # Conflict branch filtered out: no row returned
        mock_session.execute.return_value.scalar_one_or_none.return_value = None

        assert await sql_store.mark_hidden("u1", RECIPE_7, T0) is False
        # One statement: no separate read before the write
        mock_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_clear_deletes_row(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        mock_session.execute.return_value.scalar_one_or_none.return_value = True

        assert await sql_store.clear("u1", RECIPE_7) is True

        sql = compiled_sql(executed_statement(mock_session))
        assert sql.startswith("DELETE FROM hidden_content")
        assert "principal_id = 'u1'" in sql
        assert "content_id = 7" in sql
        assert "RETURNING hidden_content.hidden" in sql

    @pytest.mark.asyncio
    async def test_clear_without_row(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        mock_session.execute.return_value.scalar_one_or_none.return_value = None

        assert await sql_store.clear("u1", RECIPE_7) is False

    @pytest.mark.asyncio
    async def test_get_maps_row_to_record(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        row = HiddenContentModel(
            principal_id="u1",
            content_kind="recipe",
            content_id=7,
            hidden=True,
            hidden_at=T0,
        )
        mock_session.execute.return_value.scalar_one_or_none.return_value = row

        record = await sql_store.get("u1", RECIPE_7)

        assert record is not None
        assert record.principal == "u1"
        assert record.ref == RECIPE_7
        assert record.hidden is True
        assert record.hidden_at == T0

    @pytest.mark.asyncio
    async def test_get_missing_row(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        mock_session.execute.return_value.scalar_one_or_none.return_value = None

        assert await sql_store.get("u1", RECIPE_7) is None

    @pytest.mark.asyncio
    async def test_list_hidden_orders_newest_first(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        rows = [
            HiddenContentModel(
                principal_id="u1",
                content_kind="recipe",
                content_id=content_id,
                hidden=True,
                hidden_at=T0,
            )
            for content_id in (9, 8)
        ]
        mock_session.execute.return_value.scalars.return_value.all.return_value = rows

        records = await sql_store.list_hidden("u1", ContentKind.RECIPE)

        assert [record.ref.id for record in records] == [9, 8]
        sql = compiled_sql(executed_statement(mock_session))
        assert (
            "ORDER BY hidden_content.hidden_at DESC, hidden_content.content_id DESC"
            in sql
        )

    @pytest.mark.asyncio
    async def test_driver_error_becomes_store_unavailable(
        self, sql_store: SQLVisibilityStore, mock_session: MagicMock
    ):
        mock_session.execute.side_effect = OperationalError(
            "INSERT", {}, Exception("connection refused")
        )

        with pytest.raises(StoreUnavailableError):
            await sql_store.mark_hidden("u1", RECIPE_7, T0)

    @pytest.mark.asyncio
    async def test_connection_error_becomes_store_unavailable(
        self, sql_store: SQLVisibilityStore, session_factory: MagicMock
    ):
        session_factory.side_effect = ConnectionRefusedError("no route")

        with pytest.raises(StoreUnavailableError):
            await sql_store.get("u1", RECIPE_7)


class TestSQLContentCatalog:
    """Test cases for SQLContentCatalog."""

    @pytest.mark.asyncio
    async def test_exists_queries_kind_table(
        self, session_factory: MagicMock, mock_session: MagicMock
    ):
        mock_session.execute.return_value.scalar_one_or_none.return_value = 42
        catalog = SQLContentCatalog(session_factory)

        assert await catalog.exists(ContentReference(ContentKind.CUISINE, 42)) is True

        sql = compiled_sql(executed_statement(mock_session))
        assert "FROM cultural_cuisines" in sql

    @pytest.mark.asyncio
    async def test_missing_row(
        self, session_factory: MagicMock, mock_session: MagicMock
    ):
        mock_session.execute.return_value.scalar_one_or_none.return_value = None
        catalog = SQLContentCatalog(session_factory)

        assert await catalog.exists(RECIPE_7) is False
        sql = compiled_sql(executed_statement(mock_session))
        assert "FROM cultural_recipes" in sql

    @pytest.mark.asyncio
    async def test_id_beyond_table_range_skips_query(
        self, session_factory: MagicMock, mock_session: MagicMock
    ):
        catalog = SQLContentCatalog(session_factory)

        ref = ContentReference(ContentKind.RECIPE, MAX_CONTENT_TABLE_ID + 1)
        assert await catalog.exists(ref) is False
        mock_session.execute.assert_not_awaited()
