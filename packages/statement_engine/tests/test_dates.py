from datetime import date, datetime, timedelta, timezone

import pandas as pd
import pytest

from packages.statement_engine.dates import (
    ParsedDate,
    UnparsedDate,
    parse_date,
    parse_date_or_none,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("2024-03-15", date(2024, 3, 15)),
        ("2024-03-15T10:30:00", date(2024, 3, 15)),
        ("15/03/2024", date(2024, 3, 15)),
        ("15-03-2024", date(2024, 3, 15)),
        ("15.03.24", date(2024, 3, 15)),
        ("15 Mar 2024", date(2024, 3, 15)),
        ("15-Mar-2024", date(2024, 3, 15)),
    ],
)
def test_parse_text_formats(raw, expected):
    assert parse_date(raw) == ParsedDate(expected)


def test_slash_dates_are_day_first():
    assert parse_date_or_none("03/04/2024") == date(2024, 4, 3)


def test_day_and_month_swap_when_month_is_impossible():
    """04/15/2024 cannot be DD/MM, so it is read as MM/DD."""
    assert parse_date_or_none("04/15/2024") == date(2024, 4, 15)


def test_spreadsheet_serial():
    assert parse_date(45292) == ParsedDate(date(2024, 1, 1))
    assert parse_date(45292.75) == ParsedDate(date(2024, 1, 1))


def test_out_of_range_serial_is_unparsed():
    assert isinstance(parse_date(0), UnparsedDate)
    assert isinstance(parse_date(3_000_000), UnparsedDate)


def test_native_dates_and_timestamps():
    assert parse_date(date(2024, 5, 1)) == ParsedDate(date(2024, 5, 1))
    assert parse_date(datetime(2024, 5, 1, 23, 59)) == ParsedDate(date(2024, 5, 1))
    assert parse_date(pd.Timestamp("2024-05-01")) == ParsedDate(date(2024, 5, 1))


def test_timezone_aware_values_use_utc_calendar_date():
    dubai = timezone(timedelta(hours=4))
    assert parse_date_or_none(datetime(2024, 1, 1, 2, 0, tzinfo=dubai)) == date(2023, 12, 31)


@pytest.mark.parametrize("raw", ["Opening Balance", "", "   ", None, "2024", "31/02/2024"])
def test_unparseable_values_keep_original(raw):
    result = parse_date(raw)
    assert isinstance(result, UnparsedDate)
    assert result.original == raw


def test_parse_date_or_none():
    assert parse_date_or_none("Total") is None
    assert parse_date_or_none("2024-02-29") == date(2024, 2, 29)
