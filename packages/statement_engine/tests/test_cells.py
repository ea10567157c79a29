import math
from datetime import date, datetime

import pandas as pd

from packages.statement_engine.cells import (
    EMPTY,
    DateCell,
    NumberCell,
    TextCell,
    cell_text,
    parse_amount,
    to_cell,
)


def test_to_cell_classifies_raw_values():
    assert to_cell(None) == EMPTY
    assert to_cell(float("nan")) == EMPTY
    assert to_cell("   ") == EMPTY
    assert to_cell(pd.NaT) == EMPTY
    assert to_cell(12) == NumberCell(12.0)
    assert to_cell(" Salary ") == TextCell("Salary")
    assert to_cell(date(2024, 1, 5)) == DateCell(datetime(2024, 1, 5))
    assert to_cell(pd.Timestamp("2024-01-05")) == DateCell(pd.Timestamp("2024-01-05"))


def test_to_cell_passes_cells_through():
    cell = TextCell("already classified")
    assert to_cell(cell) is cell


def test_parse_amount_thousands_and_symbols():
    assert parse_amount(TextCell("1,234.56")) == 1234.56
    assert parse_amount(TextCell("AED 2,000.00")) == 2000.0
    assert parse_amount(TextCell("-50")) == -50.0


def test_parse_amount_parenthesis_negative():
    """Accounting notation: (1,234.56) is a negative amount."""
    assert parse_amount(TextCell("(1,234.56)")) == -1234.56


def test_parse_amount_unparseable_is_zero():
    assert parse_amount(TextCell("n/a")) == 0.0
    assert parse_amount(TextCell("-")) == 0.0
    assert parse_amount(NumberCell(math.inf)) == 0.0
    assert parse_amount(EMPTY) == 0.0
    assert parse_amount(DateCell(datetime(2024, 1, 1))) == 0.0


def test_parse_amount_rejects_dates():
    assert parse_amount(TextCell("01/02/2024")) == 0.0
    assert parse_amount(TextCell("2024-02-01")) == 0.0
    assert parse_amount(TextCell("1/2")) == 0.0


def test_cell_text_renders_numbers_without_trailing_zero():
    assert cell_text(NumberCell(12.0)) == "12"
    assert cell_text(NumberCell(12.5)) == "12.5"
    assert cell_text(EMPTY) == ""
