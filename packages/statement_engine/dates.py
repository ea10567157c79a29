"""
Permissive date parsing shared by the normalizer, the period filter and the
matcher.

Results are explicit: `ParsedDate` or `UnparsedDate`, so callers can include
unparseable rows by default and still report them separately.
"""

import re
import warnings
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Union

import pandas as pd

from .cells import CellValue, DateCell, EmptyCell, NumberCell, TextCell, to_cell


@dataclass(frozen=True)
class ParsedDate:
    value: date


@dataclass(frozen=True)
class UnparsedDate:
    original: Any


DateParseResult = Union[ParsedDate, UnparsedDate]

# Excel's day zero (accounts for the 1900 leap-year bug for serials > 60)
SPREADSHEET_EPOCH = date(1899, 12, 30)
# 1900-01-01 .. 9999-12-31
MIN_SERIAL = 1
MAX_SERIAL = 2958465

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:$|[T\s])")
_DAY_FIRST = re.compile(r"^(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{2}|\d{4})$")

# Named formats tried before the generic fallback
DATE_FORMATS = [
    "%d %b %Y",
    "%d %B %Y",
    "%d-%b-%Y",
    "%d-%b-%y",
    "%d %b %y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%Y/%m/%d",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
]


def _to_utc_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _from_serial(serial: float) -> Optional[date]:
    if not MIN_SERIAL <= serial <= MAX_SERIAL:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=int(serial))


def _parse_day_first(day: int, month: int, year: int) -> Optional[date]:
    if year < 100:
        year += 2000
    # DD/MM unless the month slot cannot be a month
    if month > 12 and day <= 12:
        day, month = month, day
    return _safe_date(year, month, day)


def _parse_text(text: str) -> Optional[date]:
    iso = _ISO_PREFIX.match(text)
    if iso:
        return _safe_date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))

    day_first = _DAY_FIRST.match(text)
    if day_first:
        day, month, year = (int(part) for part in day_first.groups())
        return _parse_day_first(day, month, year)

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    # Generic fallback. Bare numbers are never dates here; serials arrive as numbers.
    if re.fullmatch(r"[\d.,\s-]+", text):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        parsed = pd.to_datetime(text, dayfirst=True, errors="coerce", utc=True)
    if pd.isna(parsed):
        return None
    return parsed.date()


def parse_date(raw: Any) -> DateParseResult:
    """Parse a date from a raw value or a classified cell."""
    if isinstance(raw, ParsedDate):
        return raw
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return ParsedDate(raw)

    cell: CellValue = to_cell(raw)
    parsed: Optional[date] = None
    match cell:
        case DateCell(value=value):
            parsed = _to_utc_date(value)
        case NumberCell(value=value):
            parsed = _from_serial(value)
        case TextCell(text=text):
            parsed = _parse_text(text)
        case EmptyCell():
            parsed = None

    if parsed is None:
        return UnparsedDate(raw)
    return ParsedDate(parsed)


def parse_date_or_none(raw: Any) -> Optional[date]:
    result = parse_date(raw)
    return result.value if isinstance(result, ParsedDate) else None
