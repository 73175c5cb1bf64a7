#!/usr/bin/env python3
"""
Migration script for the hidden_content table.
Creates the table and its index, then copies any legacy per-row ``hidden_for``
arrays from the content tables into it.
"""

import asyncio
import logging
import os
from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from content_visibility.core.db import to_async_url

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


SCHEMA_QUERIES = [
    """DO $$
       BEGIN
         IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'content_kind_enum') THEN
           CREATE TYPE content_kind_enum AS ENUM ('cuisine', 'recipe');
         END IF;
       END $$""",
    """CREATE TABLE IF NOT EXISTS hidden_content (
           principal_id TEXT NOT NULL,
           content_kind content_kind_enum NOT NULL,
           content_id BIGINT NOT NULL,
           hidden BOOLEAN NOT NULL DEFAULT true,
           hidden_at TIMESTAMPTZ NOT NULL DEFAULT now(),
           PRIMARY KEY (principal_id, content_kind, content_id)
       )""",
    """CREATE INDEX IF NOT EXISTS idx_hidden_content_principal_kind_time
       ON hidden_content(principal_id, content_kind, hidden_at)""",
]

# (content table, kind) pairs that may carry a legacy hidden_for JSONB column
LEGACY_SOURCES = [
    ("cultural_cuisines", "cuisine"),
    ("cultural_recipes", "recipe"),
]

LEGACY_COLUMN_QUERY = """
    SELECT 1 FROM information_schema.columns
    WHERE table_name = :table_name AND column_name = 'hidden_for'
"""


def backfill_query(table_name: str, kind: str) -> str:
    """Build the statement copying one table's hidden_for entries."""
    return f"""
        INSERT INTO hidden_content (principal_id, content_kind, content_id, hidden)
        SELECT hidden.principal_id, '{kind}'::content_kind_enum, c.id, true
        FROM {table_name} c,
             jsonb_array_elements_text(c.hidden_for) AS hidden(principal_id)
        WHERE c.hidden_for IS NOT NULL
          AND jsonb_typeof(c.hidden_for) = 'array'
        ON CONFLICT DO NOTHING
    """


async def run_migration(database_url: str) -> None:
    """Create the visibility schema and backfill legacy state."""
    engine = create_async_engine(to_async_url(database_url), echo=False)
    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    try:
        async with async_session() as session:
            logger.info(f"Starting hidden_content migration at {datetime.now()}")

            for i, query in enumerate(SCHEMA_QUERIES, 1):
                logger.info(
                    f"Applying schema step {i}/{len(SCHEMA_QUERIES)}: "
                    f"{' '.join(query.split())[:60]}..."
                )
                await session.execute(text(query))
            await session.commit()

            for table_name, kind in LEGACY_SOURCES:
                result = await session.execute(
                    text(LEGACY_COLUMN_QUERY), {"table_name": table_name}
                )
                if result.first() is None:
                    logger.info(f"No legacy hidden_for column on {table_name}")
                    continue

                result = await session.execute(text(backfill_query(table_name, kind)))
                await session.commit()
                logger.info(
                    f"Backfilled {result.rowcount} hidden {kind} rows "
                    f"from {table_name}.hidden_for"
                )

            logger.info(f"hidden_content migration completed at {datetime.now()}")
    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise
    finally:
        await engine.dispose()


async def main() -> None:
    """Main migration function."""

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        logger.error("DATABASE_URL environment variable not set")
        return

    await run_migration(database_url)


if __name__ == "__main__":
    asyncio.run(main())
