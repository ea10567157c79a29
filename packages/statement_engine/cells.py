"""
Cell values - the tagged union every grid cell is classified into.

Raw spreadsheet cells arrive as str, int, float, datetime, pandas Timestamp,
NaN or None. `to_cell` is the only place that inspects the raw Python type;
everything downstream matches on the union instead.
"""

import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Union

import pandas as pd


@dataclass(frozen=True)
class TextCell:
    text: str


@dataclass(frozen=True)
class NumberCell:
    value: float


@dataclass(frozen=True)
class DateCell:
    value: datetime


@dataclass(frozen=True)
class EmptyCell:
    pass


CellValue = Union[TextCell, NumberCell, DateCell, EmptyCell]

EMPTY = EmptyCell()

_CELL_TYPES = (TextCell, NumberCell, DateCell, EmptyCell)

# Anything that is not a digit, dot or minus sign (currency symbols, codes, commas)
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
# Dates such as 01/02/2024 or 01-02-2024 are never money
_DATE_LIKE = re.compile(r"\d{1,4}[/.-]\d{1,2}[/.-]\d{1,4}")


def to_cell(raw: Any) -> CellValue:
    """Classify a raw cell value."""
    if raw is None:
        return EMPTY
    if isinstance(raw, _CELL_TYPES):
        return raw
    if isinstance(raw, bool):
        return TextCell(str(raw))
    if isinstance(raw, datetime):
        # pd.Timestamp is a datetime subclass; NaT is handled by the isna check below
        if pd.isna(raw):
            return EMPTY
        return DateCell(raw)
    if isinstance(raw, date):
        return DateCell(datetime(raw.year, raw.month, raw.day))
    if isinstance(raw, numbers.Real):
        if math.isnan(raw):
            return EMPTY
        return NumberCell(float(raw))
    try:
        if pd.isna(raw):
            return EMPTY
    except (TypeError, ValueError):
        pass

    text = str(raw).strip()
    if not text:
        return EMPTY
    return TextCell(text)


def cell_text(cell: CellValue) -> str:
    """Render a cell as display text (used for headers and descriptions)."""
    match cell:
        case TextCell(text=text):
            return text
        case NumberCell(value=value):
            return str(int(value)) if value.is_integer() else str(value)
        case DateCell(value=value):
            return value.date().isoformat()
        case EmptyCell():
            return ""


def is_blank(cell: CellValue) -> bool:
    return isinstance(cell, EmptyCell)


def parse_amount(cell: CellValue) -> float:
    """
    Parse a money cell.

    Handles thousands separators, currency symbols/codes and
    parenthesis-negative notation: "(1,234.56)" -> -1234.56.
    Anything unparseable is 0.
    """
    match cell:
        case NumberCell(value=value):
            return value if math.isfinite(value) else 0.0
        case TextCell(text=text):
            clean = text.strip()
            if "/" in clean or _DATE_LIKE.fullmatch(clean):
                return 0.0
            negative = clean.startswith("(") and clean.endswith(")")
            if negative:
                clean = clean[1:-1]
            clean = _NON_NUMERIC.sub("", clean)
            if not clean:
                return 0.0
            try:
                amount = float(clean)
            except ValueError:
                return 0.0
            if not math.isfinite(amount):
                return 0.0
            return -abs(amount) if negative else amount
        case DateCell() | EmptyCell():
            return 0.0
