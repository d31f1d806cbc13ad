"""
Spreadsheet reader for product imports.

Reads the first sheet of an uploaded Excel (.xlsx / .xls) or CSV file into
an ordered list of raw rows (column name -> cell value). Column names are
whatever the operator's spreadsheet uses; interpreting them is left to the
column mapping and the AI extraction step.
"""

from datetime import date, datetime
import csv
from io import BytesIO, StringIO
from typing import Any, Optional
import math
import structlog

import pandas as pd

from exceptions import SpreadsheetParseError
from models.product_import import CellValue, RawRow

logger = structlog.get_logger(__name__)


XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0"
CSV_ENCODINGS = ("utf-8-sig", "latin-1")
CSV_SEPARATORS = ",;\t"


def read_spreadsheet(content: bytes, filename: Optional[str] = None) -> list[RawRow]:
    """
    Parse an uploaded spreadsheet.

    Format is detected from the file content, not the extension.

    Args:
        content: Raw file bytes
        filename: Original filename (logging only)

    Returns:
        Rows in spreadsheet order. An empty list means the file has no data,
        which callers must handle separately from a parse failure.

    Raises:
        SpreadsheetParseError: If the bytes are not a readable spreadsheet
    """
    file_format = detect_format(content)
    logger.info(
        "parsing_spreadsheet",
        filename=filename,
        format=file_format,
        size=len(content)
    )

    if file_format == "empty":
        return []

    if file_format == "binary":
        raise SpreadsheetParseError(
            message="Unsupported file. Upload an Excel (.xlsx, .xls) or CSV file.",
            details={"filename": filename}
        )

    try:
        if file_format == "csv":
            df = _load_csv(content)
        else:
            engine = "openpyxl" if file_format == "xlsx" else "xlrd"
            # sheet_name=0: first sheet only
            df = pd.read_excel(BytesIO(content), sheet_name=0, engine=engine)
    except SpreadsheetParseError:
        raise
    except Exception as e:
        logger.error(
            "spreadsheet_read_failed",
            filename=filename,
            format=file_format,
            error=str(e)
        )
        raise SpreadsheetParseError(
            message="Failed to read file. Check that it is a valid Excel or CSV file.",
            details={"filename": filename, "format": file_format, "original_error": str(e)}
        )

    rows = _dataframe_to_rows(df)

    logger.info(
        "spreadsheet_parsed",
        filename=filename,
        row_count=len(rows),
        column_count=len(rows[0]) if rows else 0
    )

    return rows


def extract_columns(rows: list[RawRow]) -> list[str]:
    """
    Column names of the parsed sheet.

    Taken from the first row; every row carries the same keys.
    Returns an empty list when there are no rows.
    """
    if not rows:
        return []
    return list(rows[0].keys())


def detect_format(content: bytes) -> str:
    """Return "xlsx", "xls", "csv", "empty" or "binary"."""
    if not content or not content.strip():
        return "empty"
    if content.startswith(XLSX_MAGIC):
        return "xlsx"
    if content.startswith(XLS_MAGIC):
        return "xls"
    # Text files never contain NUL bytes
    if b"\x00" in content[:4096]:
        return "binary"
    return "csv"


# ===================
# HELPERS
# ===================

def _load_csv(content: bytes) -> pd.DataFrame:
    """Load CSV with the first encoding that decodes it."""
    last_error: Optional[Exception] = None

    for encoding in CSV_ENCODINGS:
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
            continue

        separator = _sniff_separator(text)
        try:
            df = pd.read_csv(StringIO(text), sep=separator, skip_blank_lines=True)
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

        logger.debug("csv_loaded", encoding=encoding, separator=separator, columns=len(df.columns))
        return df

    raise SpreadsheetParseError(
        message="Could not decode CSV file",
        details={"original_error": str(last_error)}
    )


def _sniff_separator(text: str) -> str:
    """Separator used by the header line; "," when it has none."""
    header = next((line for line in text.splitlines() if line.strip()), "")
    try:
        return csv.Sniffer().sniff(header, delimiters=CSV_SEPARATORS).delimiter
    except csv.Error:
        return ","


def _dataframe_to_rows(df: pd.DataFrame) -> list[RawRow]:
    """Convert to plain dicts, dropping blank rows and unnamed blank columns."""
    if df.empty:
        return []

    df = df.dropna(how="all")

    # Header cells left blank come back as "Unnamed: N"
    keep = [
        col for col in df.columns
        if not (str(col).startswith("Unnamed:") and df[col].isna().all())
    ]
    df = df[keep]

    rows: list[RawRow] = []
    for record in df.to_dict(orient="records"):
        row = {str(col).strip(): _to_cell(value) for col, value in record.items()}
        if any(value is not None for value in row.values()):
            rows.append(row)

    return rows


def _to_cell(value: Any) -> CellValue:
    """Map a pandas/numpy cell to a plain Python primitive."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        if pd.isna(value):
            return None
        return value.isoformat()
    if hasattr(value, "item"):
        # numpy scalar
        value = value.item()
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, int):
        return value
    return str(value)
