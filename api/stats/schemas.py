"""
Schemas for the inventory dashboard statistics.
"""
from pydantic import BaseModel, Field


class InventoryStats(BaseModel):
    """Inventory summary shown on the dashboard."""
    totalProducts: int = Field(0, description="Number of products")
    totalStockValue: float = Field(0, description="Sum of selling price times stock")
    lowStockCount: int = Field(0, description="Products at or below the low stock threshold")
    outOfStockCount: int = Field(0, description="Products with no stock left")
    formattedStockValue: str = Field("", description="Stock value formatted for the requested language")
