"""
PostgreSQL persistence layer for content.
"""

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

import asyncpg

from shared.logging import get_logger
from shared.errors import StoreError, StoreUnavailableError, StoreQueryError
from ..models import ContentItem, PdfFile, QuizItem

# Columns the write path may change through ``update``
EDITABLE_COLUMNS = ("title", "content", "summary", "facts")

_UNAVAILABLE_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.TooManyConnectionsError,
)


class PostgresContentStore:
    """PostgreSQL-backed content store."""

    def __init__(self, dsn: str, *, command_timeout: float = 30.0, min_size: int = 2, max_size: int = 10):
        self.dsn = dsn
        self.command_timeout = command_timeout
        self.min_size = min_size
        self.max_size = max_size
        self.logger = get_logger("content.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Start the persistence layer."""
        try:
            self.pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
                init=self._init_connection,
            )

            await self._create_tables()

            self.logger.info("PostgreSQL persistence started")

        except Exception as e:
            self.logger.error("Failed to start PostgreSQL persistence", error=str(e))
            raise StoreUnavailableError(str(e), details={"operation": "start"})

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    @staticmethod
    async def _init_connection(conn: asyncpg.Connection):
        await conn.set_type_codec(
            "jsonb",
            encoder=json.dumps,
            decoder=json.loads,
            schema="pg_catalog",
        )

    async def _create_tables(self):
        """Create database tables."""
        async with self.pool.acquire() as conn:
            await conn.execute("""
                CREATE TABLE IF NOT EXISTS content_items (
                    id VARCHAR(64) PRIMARY KEY,
                    title TEXT NOT NULL,
                    content TEXT NOT NULL,
                    summary TEXT,
                    facts TEXT,
                    quiz JSONB NOT NULL DEFAULT '{}',
                    key_notes JSONB NOT NULL DEFAULT '{}',
                    image_url TEXT,
                    pdfs JSONB NOT NULL DEFAULT '[]',
                    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
                    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
                );
            """)

            await conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_content_items_created_at ON content_items(created_at DESC);
            """)

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection, mapping driver failures onto StoreError."""
        if self.pool is None:
            raise StoreUnavailableError("PostgreSQL pool not started", details={"operation": operation})

        try:
            async with self.pool.acquire() as conn:
                yield conn
        except StoreError:
            raise
        except _UNAVAILABLE_ERRORS as e:
            self.logger.error("PostgreSQL unavailable", operation=operation, error=str(e))
            raise StoreUnavailableError(str(e) or type(e).__name__, details={"operation": operation})
        except asyncpg.PostgresError as e:
            self.logger.error("PostgreSQL query failed", operation=operation, error=str(e))
            raise StoreQueryError(str(e), details={"operation": operation})

    async def find_by_id(self, content_id: str) -> Optional[ContentItem]:
        async with self._connection("find_by_id") as conn:
            row = await conn.fetchrow("""
                SELECT * FROM content_items WHERE id = $1
            """, content_id)

        return self._row_to_item(row) if row else None

    async def find_page(self, offset: int, limit: int) -> List[ContentItem]:
        async with self._connection("find_page") as conn:
            rows = await conn.fetch("""
                SELECT * FROM content_items
                ORDER BY created_at DESC, id DESC
                OFFSET $1 LIMIT $2
            """, offset, limit)

        return [self._row_to_item(row) for row in rows]

    async def count(self) -> int:
        async with self._connection("count") as conn:
            total = await conn.fetchval("SELECT COUNT(*) FROM content_items")

        return int(total or 0)

    async def find_created_between(self, start: datetime, end: datetime) -> List[ContentItem]:
        async with self._connection("find_created_between") as conn:
            rows = await conn.fetch("""
                SELECT * FROM content_items
                WHERE created_at >= $1 AND created_at <= $2
                ORDER BY created_at DESC, id DESC
            """, start, end)

        return [self._row_to_item(row) for row in rows]

    async def insert(self, item: ContentItem) -> ContentItem:
        async with self._connection("insert") as conn:
            row = await conn.fetchrow("""
                INSERT INTO content_items (
                    id, title, content, summary, facts, quiz, key_notes,
                    image_url, pdfs, created_at, updated_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                RETURNING *
            """,
                item.id, item.title, item.content, item.summary, item.facts,
                {key: quiz.to_dict() for key, quiz in item.quiz.items()},
                dict(item.key_notes), item.image_url,
                [self._pdf_to_json(pdf) for pdf in item.pdfs],
                item.created_at, item.updated_at
            )

        self.logger.info("Content saved", content_id=item.id)
        return self._row_to_item(row)

    async def update(self, content_id: str, changes: Dict[str, Any], updated_at: datetime) -> Optional[ContentItem]:
        columns = [column for column in EDITABLE_COLUMNS if column in changes]
        if not columns:
            return await self.find_by_id(content_id)

        assignments = ", ".join(f"{column} = ${index}" for index, column in enumerate(columns, start=2))
        values = [changes[column] for column in columns]
        timestamp_index = len(columns) + 2

        async with self._connection("update") as conn:
            row = await conn.fetchrow(
                f"UPDATE content_items SET {assignments}, updated_at = ${timestamp_index} "
                f"WHERE id = $1 RETURNING *",
                content_id, *values, updated_at
            )

        return self._row_to_item(row) if row else None

    async def delete(self, content_id: str) -> bool:
        async with self._connection("delete") as conn:
            result = await conn.execute("""
                DELETE FROM content_items WHERE id = $1
            """, content_id)

        if result == "DELETE 1":
            self.logger.info("Content deleted", content_id=content_id)
            return True

        self.logger.warning("Content not found for deletion", content_id=content_id)
        return False

    async def set_image(self, content_id: str, image_url: str, updated_at: datetime) -> Optional[ContentItem]:
        async with self._connection("set_image") as conn:
            row = await conn.fetchrow("""
                UPDATE content_items SET image_url = $2, updated_at = $3
                WHERE id = $1 RETURNING *
            """, content_id, image_url, updated_at)

        return self._row_to_item(row) if row else None

    async def append_pdf(self, content_id: str, pdf: PdfFile, updated_at: datetime) -> Optional[ContentItem]:
        async with self._connection("append_pdf") as conn:
            row = await conn.fetchrow("""
                UPDATE content_items SET pdfs = pdfs || $2::jsonb, updated_at = $3
                WHERE id = $1 RETURNING *
            """, content_id, [self._pdf_to_json(pdf)], updated_at)

        return self._row_to_item(row) if row else None

    async def health_check(self) -> bool:
        """Check database health."""
        try:
            async with self._connection("health_check") as conn:
                await conn.fetchval("SELECT 1")
                return True
        except StoreError:
            return False

    @staticmethod
    def _pdf_to_json(pdf: PdfFile) -> Dict[str, Any]:
        return {
            "name": pdf.name,
            "url": pdf.url,
            "uploaded_at": pdf.uploaded_at.isoformat(),
            "size": pdf.size,
        }

    def _row_to_item(self, row) -> ContentItem:
        """Convert database row to ContentItem."""
        quiz = {
            key: QuizItem(que=value["que"], ans=value["ans"], options=list(value.get("options", [])))
            for key, value in (row["quiz"] or {}).items()
        }
        pdfs = [
            PdfFile(
                name=value["name"],
                url=value["url"],
                uploaded_at=datetime.fromisoformat(value["uploaded_at"]),
                size=value["size"],
            )
            for value in (row["pdfs"] or [])
        ]

        return ContentItem(
            id=row["id"],
            title=row["title"],
            content=row["content"],
            summary=row["summary"],
            facts=row["facts"],
            quiz=quiz,
            key_notes=dict(row["key_notes"] or {}),
            image_url=row["image_url"],
            pdfs=pdfs,
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
