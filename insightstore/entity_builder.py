"""
Entity Builder Module

Turns canonicalized rows into Products, InventoryItems and Sales.

The three entity kinds share one keyed map with different merge policies:
  - products:  first write wins (the row that introduces an id fixes it)
  - inventory: last write wins (a later stock value overwrites)
  - sales:     append only (every qualifying row is a new record)
"""

import itertools
import logging
from collections import OrderedDict
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional

from . import settings
from .coercion import to_decimal, to_integer, to_timestamp
from .column_mapping import is_blank
from .errors import NoValidProductsError
from .models import InventoryItem, Product, Sale, StoreData

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════
# KEYED COLLECTION
# ═══════════════════════════════════════════════════════════════

class MergePolicy(Enum):
    FIRST_WRITE_WINS = "first_write_wins"
    LAST_WRITE_WINS = "last_write_wins"
    APPEND = "append"


class KeyedCollection:
    """Insertion-ordered map with a single upsert primitive."""

    def __init__(self, policy: MergePolicy):
        self.policy = policy
        self._items: "OrderedDict[Hashable, Any]" = OrderedDict()
        self._append_keys = itertools.count()

    def upsert(self, key: Optional[Hashable], factory: Callable[[], Any]) -> Any:
        """
        Insert or merge the value built by `factory` under `key`.

        `factory` is only called when the policy actually stores a new
        value. Returns the value held for the key afterwards.
        """
        if self.policy is MergePolicy.APPEND:
            key = (key, next(self._append_keys))
        elif self.policy is MergePolicy.FIRST_WRITE_WINS and key in self._items:
            return self._items[key]

        # Overwriting keeps the key's original position.
        self._items[key] = factory()
        return self._items[key]

    def get(self, key: Hashable, default: Any = None) -> Any:
        return self._items.get(key, default)

    def values(self) -> List[Any]:
        return list(self._items.values())

    def __contains__(self, key: Hashable) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


# ═══════════════════════════════════════════════════════════════
# ENTITY BUILDER
# ═══════════════════════════════════════════════════════════════

class RowOutcome(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class EntityBuilder:
    """
    Incrementally builds the entities of one import.

    Rows must be fed in file order; one builder per import.
    """

    def __init__(self, now: Optional[datetime] = None,
                 rejected_log_limit: Optional[int] = None):
        self.now = now or datetime.now()
        self.rejected_log_limit = (
            settings.REJECTED_ROW_LOG_LIMIT if rejected_log_limit is None
            else rejected_log_limit
        )

        self.products = KeyedCollection(MergePolicy.FIRST_WRITE_WINS)
        self.inventory = KeyedCollection(MergePolicy.LAST_WRITE_WINS)
        self.sales = KeyedCollection(MergePolicy.APPEND)

        self.rows_seen = 0
        self.rows_rejected = 0
        self.rejected_samples: List[Dict[str, Any]] = []
        self._sale_counter = itertools.count(1)

    def add_row(self, fields: Dict[str, Any], row_number: Optional[int] = None) -> RowOutcome:
        """
        Apply one canonicalized row.

        Args:
            fields: Logical field -> raw value (None when absent).
            row_number: 1-based data row number, used in diagnostics and sale ids.

        Returns:
            RowOutcome.REJECTED when the row has no id or name.
        """
        self.rows_seen += 1
        row_number = row_number if row_number is not None else self.rows_seen

        raw_id, raw_name = fields.get("id"), fields.get("name")
        if is_blank(raw_id) or is_blank(raw_name):
            self._reject(row_number, fields)
            return RowOutcome.REJECTED

        product_id = str(raw_id).strip()
        product = self.products.upsert(
            product_id, lambda: self._make_product(product_id, raw_name, fields)
        )

        self._apply_stock(product_id, fields.get("current_stock"))
        self._apply_sale(product, row_number, fields)
        return RowOutcome.ACCEPTED

    def build(self, observed_columns: Iterable[str] = ()) -> StoreData:
        """
        Freeze the collected entities.

        Raises:
            NoValidProductsError: when no row produced a product.
        """
        if not len(self.products):
            raise NoValidProductsError(list(observed_columns))

        return StoreData.assemble(
            self.products.values(),
            self.inventory.values(),
            self.sales.values(),
        )

    # --- Row steps -------------------------------------------------

    def _make_product(self, product_id: str, raw_name: Any, fields: Dict[str, Any]) -> Product:
        """
        Build the Product for a newly seen id.

        An explicit min stock of 0 is kept as 0; only a missing or
        unparseable value falls back to DEFAULT_MIN_STOCK. Older imports
        treated 0 like a missing value and stored the default instead.
        """
        raw_category = fields.get("category")
        min_stock = to_integer(fields.get("min_stock"))
        if min_stock is None:
            min_stock = settings.DEFAULT_MIN_STOCK

        return Product(
            id=product_id,
            name=str(raw_name).strip(),
            category=(
                settings.DEFAULT_CATEGORY if is_blank(raw_category)
                else str(raw_category).strip()
            ),
            cost=max(to_decimal(fields.get("cost")), 0.0),
            price=max(to_decimal(fields.get("price")), 0.0),
            min_stock_level=max(min_stock, 0),
        )

    def _apply_stock(self, product_id: str, raw_stock: Any) -> None:
        quantity = to_integer(raw_stock)
        if quantity is not None:
            self.inventory.upsert(
                product_id, lambda: self._make_inventory(product_id, max(quantity, 0))
            )
        elif product_id not in self.inventory:
            self.inventory.upsert(product_id, lambda: self._make_inventory(product_id, 0))

    def _make_inventory(self, product_id: str, quantity: int) -> InventoryItem:
        return InventoryItem(product_id=product_id, quantity=quantity, last_updated=self.now)

    def _apply_sale(self, product: Product, row_number: int, fields: Dict[str, Any]) -> None:
        raw_date = fields.get("date")
        quantity = to_integer(fields.get("quantity_sold"))
        if is_blank(raw_date) or quantity is None or quantity <= 0:
            return

        sale_id = f"sale-{row_number}-{next(self._sale_counter)}"
        self.sales.upsert(product.id, lambda: Sale(
            id=sale_id,
            product_id=product.id,
            quantity=quantity,
            total=product.price * quantity,
            date=to_timestamp(raw_date, self.now),
        ))

    def _reject(self, row_number: int, fields: Dict[str, Any]) -> None:
        self.rows_rejected += 1
        if self.rows_rejected <= self.rejected_log_limit:
            sample = {k: v for k, v in fields.items() if not is_blank(v)}
            self.rejected_samples.append({"row": row_number, "fields": sample})
            logger.warning(
                f"Linha {row_number} ignorada. ID ou Nome não encontrados. {sample}"
            )
