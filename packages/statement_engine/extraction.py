"""
Adapter for statements that were not tabular (PDFs, images).

An external extraction service returns `{transactions, summary, currency}`
for those; this module brings that payload into the same shape the
normalizer produces so the rest of the engine treats both alike.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .cells import parse_amount, to_cell
from .dates import ParsedDate, parse_date
from .models import DEFAULT_CURRENCY, BankStatementSummary, NormalizedSource, Transaction

logger = logging.getLogger(__name__)

# Extraction services are inconsistent about casing
_FIELD_ALIASES = {
    "sourceFile": "source_file",
    "originalIndex": "original_index",
    "openingBalance": "opening_balance",
    "closingBalance": "closing_balance",
    "totalDeposits": "total_deposits",
    "totalWithdrawals": "total_withdrawals",
    "accountHolder": "account_holder",
    "accountNumber": "account_number",
    "statementPeriod": "statement_period",
}


def _snake_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_FIELD_ALIASES.get(k, k): v for k, v in data.items()}


def _transaction_from_row(
    row: Mapping[str, Any], source_file: str, index: int, currency: str
) -> Transaction:
    row = _snake_keys(row)
    raw_date = row.get("date")
    parsed = parse_date(raw_date)
    # Unparseable dates are kept verbatim; the period filter fails them open
    txn_date = parsed.value if isinstance(parsed, ParsedDate) else str(raw_date or "").strip()

    confidence = row.get("confidence")
    return Transaction(
        date=txn_date,
        description=str(row.get("description") or "").strip(),
        debit=abs(parse_amount(to_cell(row.get("debit")))),
        credit=abs(parse_amount(to_cell(row.get("credit")))),
        balance=parse_amount(to_cell(row.get("balance"))),
        currency=str(row.get("currency") or currency).strip().upper(),
        source_file=source_file,
        original_index=index,
        confidence=parse_amount(to_cell(confidence)) if confidence is not None else None,
        category=str(row.get("category") or ""),
    )


def from_extracted(
    payload: Mapping[str, Any],
    source_file: str,
    default_currency: str = DEFAULT_CURRENCY,
) -> NormalizedSource:
    """Build a NormalizedSource from an extraction payload."""
    currency = str(payload.get("currency") or default_currency).strip().upper()
    rows: List[Mapping[str, Any]] = payload.get("transactions") or []

    transactions = [
        _transaction_from_row(row, source_file, i, currency)
        for i, row in enumerate(rows)
        if isinstance(row, Mapping)
    ]

    raw_summary: Optional[Mapping[str, Any]] = payload.get("summary")
    summary_data = _snake_keys(raw_summary or {})
    for key in ("opening_balance", "closing_balance", "total_deposits", "total_withdrawals"):
        summary_data[key] = parse_amount(to_cell(summary_data.get(key)))
    summary = BankStatementSummary.from_dict(summary_data)
    if not raw_summary or not raw_summary.get("currency"):
        summary.currency = currency
    if not raw_summary:
        summary.total_deposits = sum(t.credit for t in transactions)
        summary.total_withdrawals = sum(t.debit for t in transactions)
        summary.closing_balance = summary.total_deposits - summary.total_withdrawals

    logger.info(f"Accepted {len(transactions)} extracted transactions from {source_file}")
    return NormalizedSource(
        source_file=source_file,
        transactions=transactions,
        summary=summary,
        currency=currency,
    )
