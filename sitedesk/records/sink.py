"""RecordSink abstract interface."""

from abc import ABC, abstractmethod
from typing import Any

from sitedesk.db.errors import StoreError
from sitedesk.records.models import Record, RecordType


class RecordSinkError(StoreError):
    """Raised when a record could not be written."""


class RecordSink(ABC):
    """Durable store for completed-flow records."""

    @abstractmethod
    async def write(self, record_type: RecordType, fields: dict[str, Any]) -> str:
        """Write one record and return its id.

        Raises:
            RecordSinkError: If the write did not happen
        """
        pass

    @abstractmethod
    async def find(
        self,
        record_type: RecordType,
        *,
        filters: dict[str, Any] | None = None,
        limit: int = 1000,
    ) -> list[Record]:
        """List records of a type whose fields equal every filter value."""
        pass

    @abstractmethod
    async def count_by_type(self) -> dict[RecordType, int]:
        """Count records per type."""
        pass
