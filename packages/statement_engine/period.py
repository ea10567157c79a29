"""
Period Filter & Balance Reconstructor.

Restricts a merged, deduplicated ledger to a filing period and rebuilds a
summary for it. The running balance starts from the files' opening balances,
absorbs everything before the period, and the period's opening balance is
derived backwards from its closing balance. That makes

    closing == opening + deposits - withdrawals

hold by construction. Rows whose date cannot be parsed are kept in the period:
for a tax filing, dropping a real transaction is worse than showing one too
many.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from .dates import ParsedDate, parse_date
from .models import DEFAULT_CURRENCY, BankStatementSummary, Transaction

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = 0.01


@dataclass
class PeriodResult:
    transactions: List[Transaction] = field(default_factory=list)
    summary: BankStatementSummary = field(default_factory=BankStatementSummary)
    unparsed: List[Transaction] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "summary": self.summary.to_dict(),
            "unparsed": [t.to_dict() for t in self.unparsed],
        }


def _parse_bound(value: Any, name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    result = parse_date(value)
    if not isinstance(result, ParsedDate):
        raise ValueError(f"Could not parse {name}: {value!r}")
    return result.value


def _sort_key(item: Tuple[Optional[date], Transaction]):
    parsed, t = item
    index = t.original_index if t.original_index is not None else -1
    # Unparsed rows go last; they only ever land in the period
    return (parsed is None, parsed or date.min, t.source_file or "", index)


def filter_and_summarize(
    transactions: Iterable[Transaction],
    period_start: Any = None,
    period_end: Any = None,
    opening_balances: Optional[Mapping[str, float]] = None,
    currency: str = DEFAULT_CURRENCY,
    account_holder: str = "",
    account_number: str = "",
) -> PeriodResult:
    """
    Filter to [period_start, period_end] (inclusive) and reconstruct balances.

    Args:
        transactions: merged ledger, any order.
        period_start / period_end: dates or date strings; None leaves that
            side open.
        opening_balances: opening balance per source file; their sum seeds
            the running balance.

    Raises:
        ValueError: a bound cannot be parsed, or start is after end.
    """
    start = _parse_bound(period_start, "period_start")
    end = _parse_bound(period_end, "period_end")
    if start and end and start > end:
        raise ValueError(f"period_start {start} is after period_end {end}")

    dated: List[Tuple[Optional[date], Transaction]] = []
    for t in transactions:
        parsed = parse_date(t.date)
        dated.append((parsed.value if isinstance(parsed, ParsedDate) else None, t))
    dated.sort(key=_sort_key)

    running_balance = sum((opening_balances or {}).values())
    deposits = withdrawals = 0.0
    included: List[Transaction] = []
    unparsed: List[Transaction] = []
    before = after = 0

    for parsed, t in dated:
        if parsed is not None and start is not None and parsed < start:
            running_balance += t.credit - t.debit
            before += 1
            continue
        if parsed is not None and end is not None and parsed > end:
            after += 1
            continue

        if parsed is None:
            unparsed.append(t)
        included.append(t)
        deposits += t.credit
        withdrawals += t.debit
        running_balance += t.credit - t.debit

    closing = running_balance
    opening = closing - deposits + withdrawals

    if unparsed:
        logger.warning(f"{len(unparsed)} transactions with unparseable dates kept in period")
    logger.info(
        f"Period filter kept {len(included)} transactions "
        f"({before} before, {after} after the period)"
    )

    summary = BankStatementSummary(
        opening_balance=opening,
        closing_balance=closing,
        total_deposits=deposits,
        total_withdrawals=withdrawals,
        account_holder=account_holder,
        account_number=account_number,
        statement_period=_period_label(start, end),
        currency=currency,
    )
    return PeriodResult(transactions=included, summary=summary, unparsed=unparsed)


def _period_label(start: Optional[date], end: Optional[date]) -> str:
    left = start.isoformat() if start else ""
    right = end.isoformat() if end else ""
    if not left and not right:
        return ""
    return f"{left} to {right}".strip()


def balances_reconcile(summary: BankStatementSummary, tolerance: float = BALANCE_TOLERANCE) -> bool:
    """closing == opening + deposits - withdrawals, within tolerance."""
    expected = summary.opening_balance + summary.total_deposits - summary.total_withdrawals
    return abs(summary.closing_balance - expected) <= tolerance
