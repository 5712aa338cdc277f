from datetime import datetime
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    # Frozen so an imported StoreData cannot be altered after handoff.
    # Aliases keep the camelCase vocabulary used by downstream records.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Product(_Record):
    id: str
    name: str
    category: str = "General"
    cost: float = Field(default=0.0, ge=0)
    price: float = Field(default=0.0, ge=0)
    min_stock_level: int = Field(default=5, ge=0, alias="minStockLevel")


class InventoryItem(_Record):
    product_id: str = Field(..., alias="productId")
    quantity: int = Field(default=0, ge=0)
    last_updated: datetime = Field(..., alias="lastUpdated")


class Sale(_Record):
    id: str
    product_id: str = Field(..., alias="productId")
    quantity: int = Field(..., gt=0)
    total: float = Field(..., ge=0)
    date: datetime


class StoreData(_Record):
    """
    Result of one import: products and inventory in build order, sales
    newest first.
    """

    products: Tuple[Product, ...] = ()
    inventory: Tuple[InventoryItem, ...] = ()
    sales: Tuple[Sale, ...] = ()

    @classmethod
    def assemble(cls, products, inventory, sales) -> "StoreData":
        """Build a StoreData, sorting sales by date descending (stable on ties)."""
        ordered_sales = sorted(sales, key=lambda sale: sale.date, reverse=True)
        return cls(
            products=tuple(products),
            inventory=tuple(inventory),
            sales=tuple(ordered_sales),
        )
