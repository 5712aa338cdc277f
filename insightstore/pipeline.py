"""
Import Pipeline Module

Orchestrates one spreadsheet import:
Decoding -> Iterating -> Validating -> Done | Failed.

Only decoding touches the external source. Row iteration never fails on a
single row; the only fatal outcomes are an unreadable source, an empty
table, or a table where no row produced a product.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .column_mapping import canonicalize_row, normalized_columns
from .entity_builder import EntityBuilder
from .errors import EmptySourceError, IngestionError
from .file_reader import read_table
from .models import StoreData

logger = logging.getLogger(__name__)


class ImportStage(Enum):
    PENDING = "pending"
    DECODING = "decoding"
    ITERATING = "iterating"
    VALIDATING = "validating"
    DONE = "done"
    FAILED = "failed"


class ImportStats:
    """Diagnostic counters for one import."""

    def __init__(self):
        self.rows_total = 0
        self.rows_rejected = 0
        self.products = 0
        self.inventory = 0
        self.sales = 0
        self.observed_columns: List[str] = []
        self.rejected_samples: List[Dict[str, Any]] = []

    def as_dict(self) -> Dict[str, Any]:
        return {
            "rows_total": self.rows_total,
            "rows_rejected": self.rows_rejected,
            "products": self.products,
            "inventory": self.inventory,
            "sales": self.sales,
            "observed_columns": list(self.observed_columns),
        }


class ImportPipeline:
    """
    Single-use import run. Create one per file; instances share no state.
    """

    def __init__(self, now: Optional[datetime] = None,
                 rejected_log_limit: Optional[int] = None):
        self.now = now or datetime.now()
        self.rejected_log_limit = rejected_log_limit
        self.stage = ImportStage.PENDING
        self.stats = ImportStats()

    def run_file(self, content: Union[bytes, str], filename: str) -> StoreData:
        """Decode an uploaded file and import its rows."""
        self.stage = ImportStage.DECODING
        try:
            rows = read_table(content, filename)
        except IngestionError as e:
            self._fail(e)
            raise
        return self.run(rows)

    def run(self, rows: Iterable[Mapping[Any, Any]]) -> StoreData:
        """
        Import already decoded rows.

        Raises:
            EmptySourceError: no rows at all.
            NoValidProductsError: no row had both an id and a name.
        """
        try:
            builder = self._iterate(rows)
            self.stage = ImportStage.VALIDATING
            data = builder.build(self.stats.observed_columns)
        except IngestionError as e:
            self._fail(e)
            raise

        self.stats.products = len(data.products)
        self.stats.inventory = len(data.inventory)
        self.stats.sales = len(data.sales)
        self.stage = ImportStage.DONE
        logger.info(
            f"Importação concluída: {self.stats.products} produtos, "
            f"{self.stats.inventory} itens de estoque, {self.stats.sales} vendas "
            f"({self.stats.rows_rejected} de {self.stats.rows_total} linhas ignoradas)."
        )
        return data

    def _iterate(self, rows: Iterable[Mapping[Any, Any]]) -> EntityBuilder:
        self.stage = ImportStage.ITERATING
        builder = EntityBuilder(now=self.now, rejected_log_limit=self.rejected_log_limit)
        seen_columns = set()

        for index, row in enumerate(rows, start=1):
            for token in normalized_columns(row):
                if token not in seen_columns:
                    seen_columns.add(token)
                    self.stats.observed_columns.append(token)
            builder.add_row(canonicalize_row(row), row_number=index)

        self.stats.rows_total = builder.rows_seen
        self.stats.rows_rejected = builder.rows_rejected
        self.stats.rejected_samples = list(builder.rejected_samples)

        if builder.rows_seen == 0:
            raise EmptySourceError("A planilha está vazia ou não pôde ser lida.")
        return builder

    def _fail(self, error: IngestionError) -> None:
        self.stage = ImportStage.FAILED
        logger.error(f"Erro no processamento: {error.message}")


# ═══════════════════════════════════════════════════════════════
# RESULT WRAPPERS
# ═══════════════════════════════════════════════════════════════

class ImportResult:
    """Encapsulates the outcome of one import."""

    def __init__(self, valid: bool, message: str, data: Optional[StoreData] = None,
                 stats: Optional[ImportStats] = None,
                 error: Optional[IngestionError] = None):
        self.valid = valid
        self.message = message
        self.data = data
        self.stats = stats or ImportStats()
        self.error = error

    def __bool__(self):
        return self.valid


def _run_safely(pipeline: ImportPipeline, runner) -> ImportResult:
    try:
        data = runner()
    except IngestionError as e:
        return ImportResult(False, e.message, stats=pipeline.stats, error=e)

    stats = pipeline.stats
    return ImportResult(
        valid=True,
        message=(
            f"{stats.products} produtos, {stats.sales} vendas importadas "
            f"de {stats.rows_total} linhas."
        ),
        data=data,
        stats=stats,
    )


def import_rows(rows: Iterable[Mapping[Any, Any]],
                now: Optional[datetime] = None) -> ImportResult:
    """
    Import already decoded rows.

    Returns:
        ImportResult; fatal errors are captured, never raised.
    """
    pipeline = ImportPipeline(now=now)
    return _run_safely(pipeline, lambda: pipeline.run(rows))


def import_file(content: Union[bytes, str], filename: str,
                now: Optional[datetime] = None) -> ImportResult:
    """
    Main entry point: decode an uploaded file and import it.

    Args:
        content: Raw file bytes.
        filename: Original name; the extension picks CSV or Excel decoding.
        now: Ingestion timestamp (defaults to the current time).

    Returns:
        ImportResult with the StoreData on success, or the failure message.
    """
    pipeline = ImportPipeline(now=now)
    return _run_safely(pipeline, lambda: pipeline.run_file(content, filename))


def get_import_summary(result: ImportResult) -> Dict:
    """
    Generate a human-readable summary of what was imported.
    """
    if not result.valid:
        return {
            "success": False,
            "message": result.message,
            "details": None,
        }

    return {
        "success": True,
        "message": result.message,
        "details": {
            **result.stats.as_dict(),
            "rejected_samples": list(result.stats.rejected_samples),
        },
    }
