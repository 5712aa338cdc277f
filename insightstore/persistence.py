"""
Persistence Module

Storage contract for imported data, keyed by an opaque user identity.

A save in REPLACE mode clears the user's previous records child-first
(sales, inventory, products) before writing the new ones parent-first.
APPEND mode upserts products and inventory and appends sales.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from . import settings
from .errors import PersistenceError
from .models import InventoryItem, Product, Sale, StoreData

logger = logging.getLogger(__name__)


class SaveMode(Enum):
    APPEND = "append"
    REPLACE = "replace"


class StoreRepository(ABC):
    """
    Abstract base class for store backends.
    Subclasses implement the per-table primitives; `save` fixes their order.
    """

    def save(self, user_id: str, data: StoreData, mode: SaveMode = SaveMode.APPEND) -> None:
        if not user_id:
            raise PersistenceError("Usuário não autenticado")

        if mode is SaveMode.REPLACE:
            logger.info(f"Replacing stored data for user {user_id}")
            self.delete_sales(user_id)
            self.delete_inventory(user_id)
            self.delete_products(user_id)

        self.upsert_products(user_id, data.products)
        self.upsert_inventory(user_id, data.inventory)
        self.insert_sales(user_id, data.sales)
        logger.info(
            f"Saved {len(data.products)} products, {len(data.inventory)} inventory items "
            f"and {len(data.sales)} sales ({mode.value})"
        )

    @abstractmethod
    def delete_sales(self, user_id: str) -> None:
        pass

    @abstractmethod
    def delete_inventory(self, user_id: str) -> None:
        pass

    @abstractmethod
    def delete_products(self, user_id: str) -> None:
        pass

    @abstractmethod
    def upsert_products(self, user_id: str, products: Sequence[Product]) -> None:
        pass

    @abstractmethod
    def upsert_inventory(self, user_id: str, inventory: Sequence[InventoryItem]) -> None:
        pass

    @abstractmethod
    def insert_sales(self, user_id: str, sales: Sequence[Sale]) -> None:
        pass

    @abstractmethod
    def fetch(self, user_id: str) -> Optional[StoreData]:
        """Return the user's stored data, or None when they have no products yet."""
        pass


class InMemoryRepository(StoreRepository):
    """Dict-backed repository, used for local runs and tests."""

    def __init__(self, sales_limit: Optional[int] = None):
        self.sales_limit = settings.FETCH_SALES_LIMIT if sales_limit is None else sales_limit
        self.products: Dict[Tuple[str, str], Product] = {}
        self.inventory: Dict[Tuple[str, str], InventoryItem] = {}
        self.sales: List[Tuple[str, Sale]] = []
        self.operations: List[str] = []

    def delete_sales(self, user_id: str) -> None:
        self.operations.append("delete_sales")
        self.sales = [(owner, sale) for owner, sale in self.sales if owner != user_id]

    def delete_inventory(self, user_id: str) -> None:
        self.operations.append("delete_inventory")
        self.inventory = {k: v for k, v in self.inventory.items() if k[0] != user_id}

    def delete_products(self, user_id: str) -> None:
        referenced = {key[1] for key in self.inventory if key[0] == user_id}
        referenced |= {sale.product_id for owner, sale in self.sales if owner == user_id}
        if referenced:
            raise PersistenceError(
                "Não é possível remover produtos ainda referenciados por estoque ou vendas."
            )
        self.operations.append("delete_products")
        self.products = {k: v for k, v in self.products.items() if k[0] != user_id}

    def upsert_products(self, user_id: str, products: Sequence[Product]) -> None:
        self.operations.append("upsert_products")
        for product in products:
            self.products[(user_id, product.id)] = product

    def upsert_inventory(self, user_id: str, inventory: Sequence[InventoryItem]) -> None:
        self.operations.append("upsert_inventory")
        for item in inventory:
            if (user_id, item.product_id) not in self.products:
                raise PersistenceError(f"Erro ao salvar estoque: produto {item.product_id} inexistente")
            self.inventory[(user_id, item.product_id)] = item

    def insert_sales(self, user_id: str, sales: Sequence[Sale]) -> None:
        self.operations.append("insert_sales")
        for sale in sales:
            if (user_id, sale.product_id) not in self.products:
                raise PersistenceError(f"Erro ao salvar vendas: produto {sale.product_id} inexistente")
            self.sales.append((user_id, sale))

    def fetch(self, user_id: str) -> Optional[StoreData]:
        products = [p for (owner, _), p in self.products.items() if owner == user_id]
        if not products:
            return None
        inventory = [i for (owner, _), i in self.inventory.items() if owner == user_id]
        sales = StoreData.assemble(
            (), (), [sale for owner, sale in self.sales if owner == user_id]
        ).sales[: self.sales_limit]
        return StoreData(products=tuple(products), inventory=tuple(inventory), sales=sales)
