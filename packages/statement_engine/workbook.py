"""
Workbook reader - turns uploaded statement bytes into raw grids.

Every sheet comes back as a list of rows with cells left as pandas produced
them (str, int, float, Timestamp or None); header detection happens later.
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import msoffcrypto
import pandas as pd

logger = logging.getLogger(__name__)

# OLE2 Compound Document magic bytes - legacy .xls or an encrypted Office file
_OLE2_MAGIC = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"
_ZIP_MAGIC = b"PK\x03\x04"

EXCEL_EXTENSIONS = (".xlsx", ".xlsm", ".xls")
TEXT_EXTENSIONS = (".csv", ".tsv", ".txt")
CSV_ENCODINGS = ["utf-8", "latin-1", "cp1252"]
# Widest CSV row accepted; preamble rows are usually narrower than the table
MAX_CSV_COLUMNS = 64

Grid = List[List[Any]]


class UnreadableStatementError(ValueError):
    """The file could not be read as a tabular statement."""

    def __init__(self, source_file: str, reason: str):
        self.source_file = source_file
        self.reason = reason
        super().__init__(f"{source_file}: {reason}")


def _is_ole2(content: bytes) -> bool:
    return content[:8] == _OLE2_MAGIC


def detect_file_type(content: bytes, filename: str = "") -> str:
    """File extension from the name, falling back to magic numbers."""
    ext = Path(filename).suffix.lower() if filename else ""
    if ext:
        return ext
    if content.startswith(_ZIP_MAGIC):
        return ".xlsx"
    if _is_ole2(content):
        return ".xls"
    return ".csv"


def _frame_to_grid(df: pd.DataFrame) -> Grid:
    df = df.dropna(axis=1, how="all")
    df = df.astype(object).where(pd.notna(df), None)
    return df.values.tolist()


def _decrypt(content: bytes, password: Optional[str], source_file: str) -> io.BytesIO:
    """Decrypt an OLE2-wrapped workbook; plain legacy .xls passes through."""
    try:
        office_file = msoffcrypto.OfficeFile(io.BytesIO(content))
        encrypted = office_file.is_encrypted()
    except Exception as e:
        raise UnreadableStatementError(source_file, f"Unrecognised Office container: {e}") from e

    if not encrypted:
        return io.BytesIO(content)
    if not password:
        raise UnreadableStatementError(source_file, "Password required")

    decrypted = io.BytesIO()
    try:
        office_file.load_key(password=password)
        office_file.decrypt(decrypted)
    except Exception as e:
        msg = str(e).lower()
        if "password" in msg or "decrypt" in msg or "key" in msg:
            raise UnreadableStatementError(source_file, "Invalid password") from e
        raise UnreadableStatementError(source_file, f"Failed to decrypt file: {e}") from e
    decrypted.seek(0)
    return decrypted


def read_excel_grids(
    content: bytes, source_file: str, password: Optional[str] = None
) -> Dict[str, Grid]:
    if _is_ole2(content):
        workbook = _decrypt(content, password, source_file)
    else:
        workbook = io.BytesIO(content)

    try:
        sheets = pd.read_excel(workbook, sheet_name=None, header=None, dtype=object)
    except Exception as e:
        raise UnreadableStatementError(source_file, f"Could not read Excel file: {e}") from e

    return {str(name): _frame_to_grid(df) for name, df in sheets.items()}


def _decode(content: bytes, source_file: str) -> str:
    for encoding in CSV_ENCODINGS:
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise UnreadableStatementError(source_file, "Could not decode CSV file with any known encoding")


def read_csv_grid(content: bytes, source_file: str, sep: Optional[str] = None) -> Grid:
    text = _decode(content, source_file)
    if sep is None:
        sep = "\t" if source_file.lower().endswith(".tsv") else ","

    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(MAX_CSV_COLUMNS)),
            sep=sep,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False,
        )
    except Exception as e:
        raise UnreadableStatementError(source_file, f"Could not parse CSV file: {e}") from e

    df = df.where(df != "", None)
    return _frame_to_grid(df)


def read_grids(
    content: bytes, filename: str, password: Optional[str] = None
) -> Dict[str, Grid]:
    """
    Read a statement file into named grids.

    Raises:
        UnreadableStatementError: unsupported type, bad password or corrupt
            content. Only the file in question is lost.
    """
    if not content:
        raise UnreadableStatementError(filename, "File contains no data")

    file_type = detect_file_type(content, filename)
    logger.info(f"Reading {filename} as {file_type}")

    if file_type in EXCEL_EXTENSIONS:
        return read_excel_grids(content, filename, password)
    if file_type in TEXT_EXTENSIONS:
        return {"csv": read_csv_grid(content, filename)}

    raise UnreadableStatementError(filename, f"Unsupported file type: {file_type}")
