"""
Conversion of statements into the filing currency using a supplied rate.

Rates are inputs; nothing here looks them up. Converted transactions keep
their pre-conversion amounts in the `original_*` fields.
"""

from dataclasses import replace
from typing import Iterable, List

from .models import DEFAULT_CURRENCY, BankStatementSummary, Transaction


def _check_rate(rate: float) -> None:
    if rate is None or rate <= 0:
        raise ValueError(f"Conversion rate must be positive, got {rate!r}")


def convert_transaction(
    t: Transaction, rate: float, base_currency: str = DEFAULT_CURRENCY
) -> Transaction:
    _check_rate(rate)
    if t.currency == base_currency:
        return t
    return replace(
        t,
        debit=round(t.debit * rate, 2),
        credit=round(t.credit * rate, 2),
        balance=round(t.balance * rate, 2),
        currency=base_currency,
        original_currency=t.original_currency or t.currency,
        original_debit=t.debit if t.original_debit is None else t.original_debit,
        original_credit=t.credit if t.original_credit is None else t.original_credit,
        original_balance=t.balance if t.original_balance is None else t.original_balance,
    )


def convert_transactions(
    transactions: Iterable[Transaction], rate: float, base_currency: str = DEFAULT_CURRENCY
) -> List[Transaction]:
    return [convert_transaction(t, rate, base_currency) for t in transactions]


def convert_summary(
    summary: BankStatementSummary, rate: float, base_currency: str = DEFAULT_CURRENCY
) -> BankStatementSummary:
    _check_rate(rate)
    if summary.currency == base_currency:
        return summary
    return replace(
        summary,
        opening_balance=summary.opening_balance * rate,
        closing_balance=summary.closing_balance * rate,
        total_deposits=summary.total_deposits * rate,
        total_withdrawals=summary.total_withdrawals * rate,
        currency=base_currency,
    )
