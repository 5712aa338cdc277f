"""
Import Errors

Fatal failures of a single import. Row rejections and value coercion
fallbacks are not errors: they degrade to defaults and are only counted.
"""

from typing import List, Optional


class IngestionError(Exception):
    """Base class for failures that abort an import."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class SourceUnreadableError(IngestionError):
    """The file could not be decoded (encoding, corrupt binary, no sheets)."""


class EmptySourceError(IngestionError):
    """The decoded table has no data rows."""


class NoValidProductsError(IngestionError):
    """No row carried both a product id and a product name."""

    def __init__(self, observed_columns: List[str], message: Optional[str] = None):
        self.observed_columns = list(observed_columns)
        if message is None:
            detected = ", ".join(self.observed_columns) or "nenhuma"
            message = (
                f"Nenhum produto válido encontrado. Colunas detectadas: {detected}. "
                "O sistema espera colunas como 'Código' e 'Produto' ou 'Descrição'."
            )
        super().__init__(message)


class PersistenceError(Exception):
    """Raised by a store repository when a save or fetch cannot proceed."""
