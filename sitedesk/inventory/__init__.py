"""Inventory items and stock levels."""

from sitedesk.inventory.catalog import InventoryCatalog, LedgerInventoryCatalog
from sitedesk.inventory.models import InventoryCategory, InventoryItem, StockLine

__all__ = [
    "InventoryCatalog",
    "InventoryCategory",
    "InventoryItem",
    "LedgerInventoryCatalog",
    "StockLine",
]
