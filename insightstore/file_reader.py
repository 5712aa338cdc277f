"""
File Reader Module

Decodes an uploaded CSV or Excel file into an ordered list of rows
(header -> raw cell). The format is chosen from the file extension only.
"""

import io
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from .errors import EmptySourceError, SourceUnreadableError

logger = logging.getLogger(__name__)


CSV_EXTENSIONS = {".csv", ".txt"}
SPREADSHEET_EXTENSIONS = {".xlsx", ".xlsm"}
SUPPORTED_EXTENSIONS = CSV_EXTENSIONS | SPREADSHEET_EXTENSIONS

CANDIDATE_DELIMITERS = (",", ";", "\t", "|")


def detect_format(filename: str) -> str:
    """
    Map a file name to "csv" or "excel".

    Raises:
        SourceUnreadableError: for unsupported extensions.
    """
    ext = Path(filename or "").suffix.lower()
    if ext in CSV_EXTENSIONS:
        return "csv"
    if ext in SPREADSHEET_EXTENSIONS:
        return "excel"
    raise SourceUnreadableError(
        "Formato de arquivo não suportado. Envie uma planilha Excel (.xlsx) ou um arquivo CSV."
    )


def detect_delimiter(text: str) -> str:
    """Pick the most frequent candidate delimiter on the header line."""
    header = text.split("\n", 1)[0]
    counts = {sep: header.count(sep) for sep in CANDIDATE_DELIMITERS}
    best = max(CANDIDATE_DELIMITERS, key=lambda sep: counts[sep])
    return best if counts[best] else ","


def _clean_cell(value: Any) -> Any:
    if value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if pd.isna(value):
        return ""
    return value


def _to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        raise EmptySourceError("A planilha está vazia ou não pôde ser lida.")
    columns = [str(col) for col in df.columns]
    return [
        {col: _clean_cell(value) for col, value in zip(columns, values)}
        for values in df.itertuples(index=False, name=None)
    ]


def read_csv_rows(content: Union[bytes, str]) -> List[Dict[str, Any]]:
    """Decode UTF-8 CSV content (BOM tolerated); every cell stays a string."""
    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise SourceUnreadableError(
                "Não foi possível ler o arquivo CSV. Salve-o com codificação UTF-8 e tente novamente."
            )
    else:
        text = content.lstrip("\ufeff")

    if not text.strip():
        raise EmptySourceError("A planilha está vazia ou não pôde ser lida.")

    sep = detect_delimiter(text)
    truncated_lines = []

    try:
        width = len(pd.read_csv(io.StringIO(text), sep=sep, nrows=0).columns)

        def _fit_to_header(fields: List[str]) -> List[str]:
            # Rows longer than the header (trailing delimiters, stray cells)
            # keep their first `width` cells instead of aborting the read.
            truncated_lines.append(fields)
            return fields[:width]

        df = pd.read_csv(
            io.StringIO(text),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            index_col=False,
            engine="python",
            on_bad_lines=_fit_to_header,
        )
    except pd.errors.EmptyDataError:
        raise EmptySourceError("A planilha está vazia ou não pôde ser lida.")
    except (pd.errors.ParserError, ValueError) as e:
        logger.error(f"CSV parse failure: {e}")
        raise SourceUnreadableError("Não foi possível interpretar o arquivo CSV.")

    if truncated_lines:
        logger.warning(
            f"{len(truncated_lines)} linha(s) com mais colunas que o cabeçalho; "
            f"células excedentes descartadas."
        )
    return _to_rows(df)


def read_excel_rows(content: bytes) -> List[Dict[str, Any]]:
    """Decode the first sheet of an .xlsx workbook, keeping native date cells."""
    try:
        xlsx = pd.ExcelFile(io.BytesIO(content), engine="openpyxl")
    except Exception as e:
        logger.error(f"Excel open failure: {e}")
        raise SourceUnreadableError(
            "Não foi possível ler o arquivo Excel. Verifique se ele não está corrompido ou protegido por senha."
        )

    if not xlsx.sheet_names:
        raise SourceUnreadableError("O arquivo não possui abas de dados.")

    try:
        df = pd.read_excel(xlsx, sheet_name=xlsx.sheet_names[0], dtype=object)
    except Exception as e:
        logger.error(f"Excel sheet read failure: {e}")
        raise SourceUnreadableError(
            "Não foi possível ler o arquivo Excel. Verifique se ele não está corrompido ou protegido por senha."
        )

    df = df.dropna(how="all")
    return _to_rows(df)


def read_table(content: Union[bytes, str], filename: str) -> List[Dict[str, Any]]:
    """
    Main entry point for decoding an uploaded file.

    Args:
        content: Raw file bytes (str is accepted for CSV text).
        filename: Original file name; its extension selects the decoder.

    Returns:
        Rows in file order, each a dict of header -> cell value.

    Raises:
        SourceUnreadableError: unsupported, corrupt or mis-encoded file.
        EmptySourceError: the file has no data rows.
    """
    file_format = detect_format(filename)
    if file_format == "csv":
        return read_csv_rows(content)

    if isinstance(content, str):
        raise SourceUnreadableError(
            "Não foi possível ler o arquivo Excel. Verifique se ele não está corrompido ou protegido por senha."
        )
    return read_excel_rows(content)


def read_uploaded_file(uploaded_file) -> List[Dict[str, Any]]:
    """
    Decode a file-like upload object exposing `.name` and `.read()`.
    """
    if uploaded_file is None:
        raise SourceUnreadableError("Nenhum arquivo enviado.")
    content = uploaded_file.read()
    if hasattr(uploaded_file, "seek"):
        uploaded_file.seek(0)
    return read_table(content, uploaded_file.name)
