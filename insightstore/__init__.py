"""
InsightStore Import Module

Spreadsheet import engine: turns an uploaded CSV or Excel file into
products, inventory snapshots and sales.
"""

import logging

from .column_mapping import (
    FIELD_ALIASES,
    TEMPLATE_COLUMNS,
    normalize_key,
    resolve_field,
    canonicalize_row
)
from .coercion import to_decimal, to_integer, to_timestamp
from .entity_builder import EntityBuilder, KeyedCollection, MergePolicy
from .errors import (
    IngestionError,
    SourceUnreadableError,
    EmptySourceError,
    NoValidProductsError,
    PersistenceError
)
from .file_reader import read_table, read_uploaded_file
from .models import Product, InventoryItem, Sale, StoreData
from .persistence import SaveMode, StoreRepository, InMemoryRepository
from .pipeline import (
    ImportPipeline,
    ImportResult,
    ImportStage,
    import_rows,
    import_file,
    get_import_summary
)

__all__ = [
    "FIELD_ALIASES",
    "TEMPLATE_COLUMNS",
    "normalize_key",
    "resolve_field",
    "canonicalize_row",
    "to_decimal",
    "to_integer",
    "to_timestamp",
    "EntityBuilder",
    "KeyedCollection",
    "MergePolicy",
    "IngestionError",
    "SourceUnreadableError",
    "EmptySourceError",
    "NoValidProductsError",
    "PersistenceError",
    "read_table",
    "read_uploaded_file",
    "Product",
    "InventoryItem",
    "Sale",
    "StoreData",
    "SaveMode",
    "StoreRepository",
    "InMemoryRepository",
    "ImportPipeline",
    "ImportResult",
    "ImportStage",
    "import_rows",
    "import_file",
    "get_import_summary"
]

# Library default: stay silent until the application configures logging
# (see logger.setup_logger).
logging.getLogger(__name__).addHandler(logging.NullHandler())
