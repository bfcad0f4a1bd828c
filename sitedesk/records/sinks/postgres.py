"""PostgreSQL implementation of RecordSink.

Uses the ``records`` table created by migration 001; fields are JSONB.
"""

import json
from typing import Any
from uuid import uuid4

import asyncpg

from sitedesk.db.errors import StoreError
from sitedesk.db.pool import PostgresPool
from sitedesk.observability.logging import get_logger
from sitedesk.records.models import Record, RecordType
from sitedesk.records.sink import RecordSink, RecordSinkError

logger = get_logger(__name__)


class PostgresRecordSink(RecordSink):
    """PostgreSQL-backed RecordSink."""

    def __init__(self, pool: PostgresPool) -> None:
        self._pool = pool

    async def write(self, record_type: RecordType, fields: dict[str, Any]) -> str:
        record_id = str(uuid4())
        try:
            async with self._pool.acquire() as conn:
                await conn.execute(
                    """
                    INSERT INTO records (record_id, record_type, fields)
                    VALUES ($1, $2, $3::jsonb)
                    """,
                    record_id,
                    record_type.value,
                    json.dumps(fields, default=str),
                )
        except (asyncpg.PostgresError, StoreError) as e:
            logger.error("record_write_failed", record_type=record_type.value, error=str(e))
            raise RecordSinkError(f"Failed to write {record_type.value} record: {e}", cause=e) from e

        logger.info("record_written", record_type=record_type.value, record_id=record_id)
        return record_id

    async def find(
        self,
        record_type: RecordType,
        *,
        filters: dict[str, Any] | None = None,
        limit: int = 1000,
    ) -> list[Record]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT record_id, record_type, fields, created_at
                    FROM records
                    WHERE record_type = $1 AND fields @> $2::jsonb
                    ORDER BY created_at
                    LIMIT $3
                    """,
                    record_type.value,
                    json.dumps(filters or {}, default=str),
                    limit,
                )
        except (asyncpg.PostgresError, StoreError) as e:
            logger.error("record_list_failed", record_type=record_type.value, error=str(e))
            raise RecordSinkError(f"Failed to list {record_type.value} records: {e}", cause=e) from e

        return [
            Record(
                record_id=row["record_id"],
                record_type=RecordType(row["record_type"]),
                fields=json.loads(row["fields"]) if isinstance(row["fields"], str) else dict(row["fields"]),
                created_at=row["created_at"],
            )
            for row in rows
        ]

    async def count_by_type(self) -> dict[RecordType, int]:
        try:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(
                    "SELECT record_type, COUNT(*) AS total FROM records GROUP BY record_type"
                )
        except (asyncpg.PostgresError, StoreError) as e:
            raise RecordSinkError(f"Failed to count records: {e}", cause=e) from e
        return {RecordType(row["record_type"]): row["total"] for row in rows}
