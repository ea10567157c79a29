"""
Per-file statement check: does opening + credits - debits land on the
closing balance the statement states?

A mismatch almost always means the opening balance fed in upstream is wrong
(or rows were lost in extraction). It is reported for the user to confirm;
nothing here corrects it.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Mapping

from .models import BankStatementSummary, Transaction

STATEMENT_TOLERANCE = 0.1


@dataclass
class StatementCheck:
    source_file: str
    currency: str
    opening_balance: float
    total_debit: float
    total_credit: float
    calculated_closing: float
    closing_balance: float
    difference: float
    is_valid: bool

    def to_dict(self) -> dict:
        return asdict(self)


def check_statement(
    source_file: str,
    summary: BankStatementSummary,
    transactions: Iterable[Transaction],
    tolerance: float = STATEMENT_TOLERANCE,
) -> StatementCheck:
    own = [t for t in transactions if t.source_file == source_file]
    total_debit = sum(t.debit for t in own)
    total_credit = sum(t.credit for t in own)
    calculated = summary.opening_balance - total_debit + total_credit
    difference = abs(calculated - summary.closing_balance)
    return StatementCheck(
        source_file=source_file,
        currency=summary.currency,
        opening_balance=summary.opening_balance,
        total_debit=total_debit,
        total_credit=total_credit,
        calculated_closing=calculated,
        closing_balance=summary.closing_balance,
        difference=difference,
        is_valid=difference < tolerance,
    )


def check_statements(
    summaries: Mapping[str, BankStatementSummary],
    transactions: Iterable[Transaction],
    tolerance: float = STATEMENT_TOLERANCE,
) -> Dict[str, StatementCheck]:
    ledger: List[Transaction] = list(transactions)
    return {
        name: check_statement(name, summary, ledger, tolerance)
        for name, summary in summaries.items()
    }
