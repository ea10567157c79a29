from datetime import date

import pytest

from packages.statement_engine.pipeline import (
    ExtractedStatement,
    StatementFile,
    ingest_statements,
    normalize_source,
)

BANK_A_CSV = b"""Statement for ACME
Date,Description,Debit,Credit,Balance
2024-01-20,Opening transfer,,1000.00,6000.00
2024-02-05,Supplier payment,250.00,,5750.00
2024-03-02,Late fee,10.00,,5740.00
"""

BANK_B_PAYLOAD = {
    "currency": "AED",
    "summary": {"openingBalance": "2,000.00", "closingBalance": "2,300.00"},
    "transactions": [
        {"date": "10/02/2024", "description": "Customer receipt", "credit": "300.00", "balance": "2300.00"},
        {"date": "??", "description": "Illegible line"},
    ],
}


@pytest.fixture
def sources():
    return [
        StatementFile(filename="bank_a.csv", content=BANK_A_CSV),
        ExtractedStatement(filename="bank_b.pdf", payload=BANK_B_PAYLOAD),
        StatementFile(filename="scan.pdf", content=b"%PDF-1.4"),
    ]


def test_normalize_source_csv():
    result = normalize_source(StatementFile(filename="bank_a.csv", content=BANK_A_CSV))
    assert len(result.transactions) == 3
    assert result.summary.opening_balance == 5000.0
    assert result.summary.closing_balance == 5740.0


def test_mixed_sources_end_to_end(sources):
    result = ingest_statements(sources, "2024-02-01", "2024-02-29", max_workers=3)

    assert [f.source_file for f in result.failures] == ["scan.pdf"]
    assert result.failures[0].reason == "Unsupported file type: .pdf"
    assert set(result.file_summaries) == {"bank_a.csv", "bank_b.pdf"}

    descriptions = [t.description for t in result.transactions]
    assert descriptions == ["Supplier payment", "Customer receipt", "Illegible line"]
    assert [t.description for t in result.unparsed] == ["Illegible line"]

    summary = result.summary
    assert summary.opening_balance == 8000.0
    assert summary.total_deposits == 300.0
    assert summary.total_withdrawals == 250.0
    assert summary.closing_balance == 8050.0
    assert summary.currency == "AED"

    assert result.statement_checks["bank_a.csv"].is_valid
    assert result.statement_checks["bank_b.pdf"].is_valid


def test_opening_balance_override(sources):
    result = ingest_statements(
        sources, "2024-02-01", "2024-02-29", opening_balance_overrides={"bank_a.csv": 4000.0}
    )
    assert result.file_summaries["bank_a.csv"].opening_balance == 4000.0
    assert result.summary.closing_balance == 7050.0

    check = result.statement_checks["bank_a.csv"]
    assert not check.is_valid
    assert check.difference == 1000.0


def test_same_file_uploaded_twice_is_counted_once():
    twice = [
        StatementFile(filename="bank_a.csv", content=BANK_A_CSV),
        StatementFile(filename="bank_a.csv", content=BANK_A_CSV),
    ]
    result = ingest_statements(twice)
    assert len(result.transactions) == 3


def test_every_source_failing_is_not_an_error():
    result = ingest_statements([StatementFile(filename="a.docx", content=b"junk")])
    assert result.transactions == []
    assert len(result.failures) == 1
    assert result.summary.closing_balance == 0.0


def test_invalid_period_raises(sources):
    with pytest.raises(ValueError):
        ingest_statements(sources, "2024-03-01", "2024-01-01")


def test_result_serializes(sources):
    data = ingest_statements(sources, date(2024, 2, 1), date(2024, 2, 29)).to_dict()
    assert data["transactions"][0]["date"] == "2024-02-05"
    assert data["failures"] == [{"source_file": "scan.pdf", "reason": "Unsupported file type: .pdf"}]
    assert data["statement_checks"]["bank_b.pdf"]["calculated_closing"] == 2300.0


USD_PAYLOAD = {
    "currency": "USD",
    "summary": {"openingBalance": "1,000.00", "closingBalance": "1,100.00"},
    "transactions": [
        {"date": "12/02/2024", "description": "Client wire", "credit": "100.00", "balance": "1100.00"},
    ],
}


def test_foreign_statement_converted_before_merge():
    sources = [
        ExtractedStatement(filename="bank_b.pdf", payload=BANK_B_PAYLOAD),
        ExtractedStatement(filename="usd.pdf", payload=USD_PAYLOAD),
    ]
    result = ingest_statements(
        sources, "2024-02-01", "2024-02-29", conversion_rates={"usd": 3.6725}
    )

    wire = next(t for t in result.transactions if t.description == "Client wire")
    assert wire.currency == "AED"
    assert wire.credit == 367.25
    assert wire.original_currency == "USD"
    assert wire.original_credit == 100.0

    assert result.summary.currency == "AED"
    assert result.summary.total_deposits == pytest.approx(667.25)
    assert result.file_summaries["usd.pdf"].currency == "AED"
    assert result.file_summaries["usd.pdf"].opening_balance == pytest.approx(3672.5)
    assert result.statement_checks["usd.pdf"].is_valid


def test_foreign_statement_without_rate_raises():
    sources = [
        ExtractedStatement(filename="bank_b.pdf", payload=BANK_B_PAYLOAD),
        ExtractedStatement(filename="usd.pdf", payload=USD_PAYLOAD),
    ]
    with pytest.raises(ValueError, match="USD"):
        ingest_statements(sources)


def test_single_currency_needs_no_rates(sources):
    result = ingest_statements(sources, conversion_rates={"USD": 3.6725})
    assert all(t.currency == "AED" for t in result.transactions)
    assert all(t.original_currency is None for t in result.transactions)
