"""Inventory models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class InventoryCategory(str, Enum):
    """Item groups offered in the inventory flow."""

    BUILDING_MATERIAL = "building_material"
    CONTRACTOR_MATERIALS = "contractor_materials"
    ELECTRICAL_MATERIALS = "electrical_materials"

    @property
    def title(self) -> str:
        return self.value.replace("_", " ").title()


class InventoryItem(BaseModel):
    """A stockable item."""

    model_config = ConfigDict(frozen=True)

    item_id: str = Field(..., description="Item identifier")
    name: str = Field(..., description="Display name")
    category: InventoryCategory = Field(..., description="Item group")
    unit: str = Field(default="nos", description="Unit stock is counted in")
    active: bool = Field(default=True, description="Inactive items are hidden")


class StockLine(BaseModel):
    """Current stock of one item at one site."""

    item: InventoryItem
    quantity: int = Field(..., ge=0)
