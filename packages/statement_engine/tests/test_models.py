from datetime import date

from packages.statement_engine.models import (
    CREDIT,
    DEBIT,
    NO_DIRECTION,
    BankStatementSummary,
    Invoice,
    Transaction,
)


def test_transaction_direction_and_amount():
    assert Transaction(date="", credit=10.0).direction == CREDIT
    assert Transaction(date="", debit=10.0).direction == DEBIT
    assert Transaction(date="").direction == NO_DIRECTION
    assert Transaction(date="").amount == 0.0
    # Both sides populated: the larger wins, credit on a tie
    assert Transaction(date="", debit=5.0, credit=3.0).amount == 5.0
    assert Transaction(date="", debit=5.0, credit=5.0).direction == CREDIT


def test_transaction_dict_round_trip():
    t = Transaction(date=date(2024, 1, 2), description="Rent", debit=200.0, source_file="a.csv", original_index=4)
    data = t.to_dict()
    assert data["date"] == "2024-01-02"
    assert Transaction.from_dict(data) == t


def test_transaction_from_dict_keeps_unparseable_date():
    t = Transaction.from_dict({"date": "n/a", "description": "x", "debit": "12.5", "currency": "usd"})
    assert t.date == "n/a"
    assert t.debit == 12.5
    assert t.currency == "USD"


def test_invoice_direction_and_party():
    sale = Invoice(invoice_id="S1", invoice_type="sales", customer_name="Globex", vendor_name="Us")
    purchase = Invoice(invoice_id="P1", invoice_type="purchase", customer_name="Us", vendor_name="Initech")
    assert sale.direction == CREDIT
    assert sale.party_name == "Globex"
    assert purchase.direction == DEBIT
    assert purchase.party_name == "Initech"


def test_invoice_target_amount_prefers_aed_total():
    assert Invoice("1", "sales", total_amount=100.0, total_amount_aed=367.25).target_amount == 367.25
    assert Invoice("1", "sales", total_amount=100.0, total_amount_aed=None).target_amount == 100.0
    assert Invoice("1", "sales", total_amount=100.0, total_amount_aed=0.0).target_amount == 100.0


def test_invoice_from_dict_normalizes_type():
    invoice = Invoice.from_dict({"invoice_id": 7, "invoice_type": " Sales ", "total_amount": "50"})
    assert invoice.invoice_id == "7"
    assert invoice.invoice_type == "sales"
    assert invoice.total_amount == 50.0


def test_summary_from_dict_defaults():
    summary = BankStatementSummary.from_dict(None)
    assert summary.currency == "AED"
    assert summary.opening_balance == 0.0
