"""In-memory implementation of RecordSink."""

from collections import Counter
from typing import Any
from uuid import uuid4

from sitedesk.records.models import Record, RecordType
from sitedesk.records.sink import RecordSink


class InMemoryRecordSink(RecordSink):
    """List-backed RecordSink for testing and development."""

    def __init__(self) -> None:
        self.records: list[Record] = []

    async def write(self, record_type: RecordType, fields: dict[str, Any]) -> str:
        record = Record(record_id=str(uuid4()), record_type=record_type, fields=dict(fields))
        self.records.append(record)
        return record.record_id

    async def find(
        self,
        record_type: RecordType,
        *,
        filters: dict[str, Any] | None = None,
        limit: int = 1000,
    ) -> list[Record]:
        results = []
        for record in self.records:
            if record.record_type != record_type:
                continue
            if filters and any(record.fields.get(k) != v for k, v in filters.items()):
                continue
            results.append(record)
        return results[:limit]

    async def count_by_type(self) -> dict[RecordType, int]:
        return dict(Counter(record.record_type for record in self.records))

    def of_type(self, record_type: RecordType) -> list[Record]:
        return [r for r in self.records if r.record_type == record_type]
