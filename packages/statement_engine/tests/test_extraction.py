from datetime import date

from packages.statement_engine.extraction import from_extracted


def test_payload_with_camel_case_summary():
    payload = {
        "currency": "usd",
        "summary": {
            "openingBalance": "1,000.00",
            "closingBalance": "1,250.00",
            "accountHolder": "ACME Trading LLC",
            "currency": "USD",
        },
        "transactions": [
            {"date": "05/02/2024", "description": "Customer receipt", "credit": "300.00", "balance": "1,300.00"},
            {"date": "2024-02-06", "description": "Bank charge", "debit": "(50.00)", "balance": 1250},
        ],
    }
    result = from_extracted(payload, "bank.pdf")

    assert result.source_file == "bank.pdf"
    assert result.currency == "USD"
    first, second = result.transactions
    assert first.date == date(2024, 2, 5)
    assert first.credit == 300.0
    assert first.balance == 1300.0
    assert first.currency == "USD"
    assert first.original_index == 0
    # Debit and credit are magnitudes
    assert second.debit == 50.0
    assert second.original_index == 1

    assert result.summary.opening_balance == 1000.0
    assert result.summary.closing_balance == 1250.0
    assert result.summary.account_holder == "ACME Trading LLC"


def test_unparseable_date_kept_verbatim():
    payload = {"transactions": [{"date": "  ??/02  ", "description": "Smudged line", "debit": "12"}]}
    txn = from_extracted(payload, "scan.jpg").transactions[0]
    assert txn.date == "??/02"
    assert txn.debit == 12.0


def test_missing_summary_is_derived_from_rows():
    payload = {
        "transactions": [
            {"date": "2024-01-01", "description": "In", "credit": 100},
            {"date": "2024-01-02", "description": "Out", "debit": 40},
        ]
    }
    result = from_extracted(payload, "bank.pdf", default_currency="AED")
    assert result.currency == "AED"
    assert result.summary.currency == "AED"
    assert result.summary.total_deposits == 100.0
    assert result.summary.total_withdrawals == 40.0
    assert result.summary.closing_balance == 60.0


def test_non_mapping_rows_ignored():
    payload = {"transactions": ["garbage", {"date": "2024-01-01", "description": "Real", "credit": 5}]}
    txns = from_extracted(payload, "bank.pdf").transactions
    assert len(txns) == 1
    assert txns[0].original_index == 1
