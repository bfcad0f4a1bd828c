"""Inventory catalog interface and a record-ledger implementation."""

from abc import ABC, abstractmethod

from sitedesk.inventory.models import InventoryCategory, InventoryItem, StockLine
from sitedesk.records.models import RecordType
from sitedesk.records.sink import RecordSink

LEDGER_SCAN_LIMIT = 100_000


class InventoryCatalog(ABC):
    """Items and their stock per site."""

    @abstractmethod
    async def list_items(self, category: InventoryCategory) -> list[InventoryItem]:
        """Active items in a category, in display order."""
        pass

    @abstractmethod
    async def stock_level(self, item_id: str, site_id: str) -> int:
        """Current stock of an item at a site, never negative."""
        pass

    async def stock_report(self, site_id: str) -> list[StockLine]:
        """Stock of every active item at a site."""
        lines = []
        for category in InventoryCategory:
            for item in await self.list_items(category):
                lines.append(StockLine(item=item, quantity=await self.stock_level(item.item_id, site_id)))
        return lines


class LedgerInventoryCatalog(InventoryCatalog):
    """Derives stock from inventory transaction records.

    Stock is the sum of ``in`` quantities minus ``out`` quantities for the
    item and site, floored at zero.
    """

    def __init__(self, items: list[InventoryItem], records: RecordSink) -> None:
        self._items = {item.item_id: item for item in items}
        self._records = records

    async def list_items(self, category: InventoryCategory) -> list[InventoryItem]:
        items = [i for i in self._items.values() if i.category == category and i.active]
        return sorted(items, key=lambda i: i.name)

    async def stock_level(self, item_id: str, site_id: str) -> int:
        transactions = await self._records.find(
            RecordType.INVENTORY_TRANSACTION,
            filters={"item_id": item_id, "site": site_id},
            limit=LEDGER_SCAN_LIMIT,
        )
        total = 0
        for record in transactions:
            quantity = int(record.fields.get("quantity", 0))
            total += quantity if record.fields.get("transaction_type") == "in" else -quantity
        return max(total, 0)
