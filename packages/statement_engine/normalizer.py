"""
Statement Normalizer - maps a raw 2-D grid of unknown layout into canonical
Transaction records.

Steps: find the header row by keyword scoring, resolve which column plays
which role, parse each data row, then derive the per-source summary.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .cells import CellValue, EMPTY, cell_text, is_blank, parse_amount, to_cell
from .dates import ParsedDate, parse_date
from .models import (
    DEFAULT_CURRENCY,
    BankStatementSummary,
    NormalizedSource,
    Transaction,
)

logger = logging.getLogger(__name__)

HEADER_SCAN_DEPTH = 50
MIN_HEADER_SCORE = 3

# Role vocabularies. Keys of 3 characters or fewer only match whole words;
# EXACT_ONLY_KEYWORDS must be the whole header ("Amount in AED" is not a credit column).
COLUMN_KEYWORDS: Dict[str, List[str]] = {
    "date": [
        "date",
        "txn date",
        "transaction date",
        "posting date",
        "value date",
        "tx date",
        "value_date",
        "booking date",
    ],
    "description": [
        "description",
        "details",
        "narration",
        "transaction details",
        "particulars",
        "remarks",
        "reference",
        "memo",
        "desc",
    ],
    "debit": [
        "debit",
        "dr",
        "withdrawal",
        "out",
        "paid out",
        "payments",
        "debit amount",
        "withdrawal amount",
    ],
    "credit": [
        "credit",
        "cr",
        "deposit",
        "in",
        "paid in",
        "receipts",
        "credit amount",
        "deposit amount",
    ],
    "amount": ["amount", "net amount", "total", "transaction amount", "value", "sum"],
    "balance": ["balance", "bal", "running balance", "rem balance", "closing balance"],
    "category": ["category", "account", "classification", "type"],
    "currency": ["currency", "curr", "ccy"],
}

EXACT_ONLY_KEYWORDS = {"in", "out"}

# Roles holding money; a header naming a date never feeds them ("Value Date")
MONEY_ROLES = ("debit", "credit", "amount", "balance")

HEADER_WEIGHTS = {
    "date": 3,
    "description": 2,
    "debit": 2,
    "credit": 2,
    "amount": 1,
}

# Resolution order; on a collision the later role gives way
ROLE_PRIORITY = [
    "date",
    "description",
    "debit",
    "credit",
    "amount",
    "balance",
    "category",
    "currency",
]

_WORD = re.compile(r"[a-z0-9]+")
_LEADING_CODE = re.compile(r"^\d+\s+")


def _header_text(cell: Any) -> str:
    return cell_text(to_cell(cell)).lower().strip()


def keyword_matches(header: str, keyword: str) -> bool:
    """Whether a lower-cased header cell contains a role keyword."""
    if not header:
        return False
    if header == keyword:
        return True
    if keyword in EXACT_ONLY_KEYWORDS:
        return False
    if len(keyword) <= 3:
        return keyword in _WORD.findall(header)
    return keyword in header


def _has_role(headers: Sequence[str], role: str) -> bool:
    return any(
        keyword_matches(h, k) for h in headers for k in COLUMN_KEYWORDS[role]
    )


def score_header_row(row: Sequence[Any]) -> int:
    headers = [_header_text(cell) for cell in row]
    return sum(
        weight for role, weight in HEADER_WEIGHTS.items() if _has_role(headers, role)
    )


def detect_header_row(
    grid: Sequence[Sequence[Any]], scan_depth: int = HEADER_SCAN_DEPTH
) -> Optional[int]:
    """
    Index of the most header-like row among the first `scan_depth` rows.

    Returns None when no row reaches MIN_HEADER_SCORE; the sheet is then
    treated as non-tabular.
    """
    best_index: Optional[int] = None
    best_score = 0
    for i, row in enumerate(grid[:scan_depth]):
        score = score_header_row(row or [])
        if score > best_score:
            best_score = score
            best_index = i

    if best_index is None or best_score < MIN_HEADER_SCORE:
        return None
    return best_index


def _is_date_header(header: str) -> bool:
    # Whole word, so "Updated Balance" is still a balance column
    return "date" in _WORD.findall(header)


def _find_column(headers: Sequence[str], role: str, claimed: set) -> Optional[int]:
    keywords = COLUMN_KEYWORDS[role]
    eligible = [
        i for i in range(len(headers))
        if role not in MONEY_ROLES or not _is_date_header(headers[i])
    ]
    unclaimed = [i for i in eligible if i not in claimed]
    taken = [i for i in eligible if i in claimed]
    # Unclaimed columns first, exact before keyword match, vocabulary order wins
    for pool in (unclaimed, taken):
        for keyword in keywords:
            for i in pool:
                if headers[i] == keyword:
                    return i
        for keyword in keywords:
            for i in pool:
                if keyword_matches(headers[i], keyword):
                    return i
    return None


def resolve_columns(header_row: Sequence[Any]) -> Dict[str, Optional[int]]:
    """
    Map each role to a column index.

    Two roles only land on the same column when a merged header carries both
    keywords ("Description Credit"). The lower-priority role then moves to the
    next column if that column's header is blank, otherwise it is dropped.
    """
    headers = [_header_text(cell) for cell in header_row]
    columns: Dict[str, Optional[int]] = {}
    owner: Dict[int, str] = {}

    for role in ROLE_PRIORITY:
        index = _find_column(headers, role, set(owner))
        if index is None:
            columns[role] = None
            continue

        if index in owner:
            adjacent = index + 1
            if adjacent < len(headers) and not headers[adjacent] and adjacent not in owner:
                logger.debug(
                    f"Column collision on {headers[index]!r}: "
                    f"{role} moved from {index} to {adjacent}"
                )
                index = adjacent
            else:
                logger.debug(
                    f"Column collision on {headers[index]!r}: "
                    f"{role} left unresolved ({owner[index]} keeps it)"
                )
                columns[role] = None
                continue

        columns[role] = index
        owner[index] = role

    return columns


def _cell_at(row: Sequence[Any], index: Optional[int]) -> CellValue:
    if index is None or index >= len(row):
        return EMPTY
    return to_cell(row[index])


def parse_row(
    row: Sequence[Any],
    columns: Mapping[str, Optional[int]],
    source_file: str,
    row_index: int,
    default_currency: str = DEFAULT_CURRENCY,
) -> Optional[Transaction]:
    """Parse a data row; None for footer, subtotal and noise rows."""
    parsed_date = parse_date(_cell_at(row, columns.get("date")))
    if not isinstance(parsed_date, ParsedDate):
        return None

    description = cell_text(_cell_at(row, columns.get("description"))).strip()

    debit = abs(parse_amount(_cell_at(row, columns.get("debit"))))
    credit = abs(parse_amount(_cell_at(row, columns.get("credit"))))
    if debit == 0 and credit == 0:
        amount_cell = _cell_at(row, columns.get("amount"))
        if not is_blank(amount_cell):
            amount = parse_amount(amount_cell)
            if amount < 0:
                debit = abs(amount)
            else:
                credit = amount

    if not description and debit == 0 and credit == 0:
        return None

    currency = cell_text(_cell_at(row, columns.get("currency"))).strip().upper()
    category = _LEADING_CODE.sub("", cell_text(_cell_at(row, columns.get("category"))))

    return Transaction(
        date=parsed_date.value,
        description=description,
        debit=debit,
        credit=credit,
        balance=parse_amount(_cell_at(row, columns.get("balance"))),
        currency=currency or default_currency,
        source_file=source_file,
        original_index=row_index,
        confidence=100.0,
        category=category,
    )


def summarize_source(
    transactions: Sequence[Transaction],
    has_balance: bool,
    currency: str = DEFAULT_CURRENCY,
) -> BankStatementSummary:
    """
    Opening/closing balances for one source.

    With a balance column the opening balance is backed out of the first
    row (balance - credit + debit) and the closing balance is the last
    stated balance. Without one, closing is opening plus the net movement.
    """
    if not transactions:
        return BankStatementSummary(currency=currency)

    ordered = sorted(transactions, key=lambda t: t.date)
    first, last = ordered[0], ordered[-1]

    total_deposits = sum(t.credit for t in transactions)
    total_withdrawals = sum(t.debit for t in transactions)

    opening = 0.0
    if has_balance and first.balance:
        opening = first.balance - first.credit + first.debit

    if has_balance and last.balance:
        closing = last.balance
    else:
        closing = opening + total_deposits - total_withdrawals

    return BankStatementSummary(
        opening_balance=opening,
        closing_balance=closing,
        total_deposits=total_deposits,
        total_withdrawals=total_withdrawals,
        statement_period=f"{first.date.isoformat()} to {last.date.isoformat()}",
        currency=currency,
    )


def normalize_grid(
    grid: Sequence[Sequence[Any]],
    source_file: str,
    default_currency: str = DEFAULT_CURRENCY,
    sheet_name: Optional[str] = None,
) -> NormalizedSource:
    """
    Normalize one sheet.

    A sheet without a recognisable header row yields an empty result rather
    than an error.
    """
    header_index = detect_header_row(grid)
    if header_index is None:
        logger.info(f"No header row found in {source_file} ({sheet_name or 'sheet'})")
        return NormalizedSource(
            source_file=source_file,
            summary=BankStatementSummary(currency=default_currency),
            currency=default_currency,
            sheet_name=sheet_name,
        )

    columns = resolve_columns(grid[header_index])
    logger.debug(f"Header row {header_index} in {source_file}: {columns}")

    transactions: List[Transaction] = []
    for i in range(header_index + 1, len(grid)):
        row = grid[i] or []
        if not row:
            continue
        txn = parse_row(row, columns, source_file, i, default_currency)
        if txn is not None:
            transactions.append(txn)

    currency = transactions[0].currency if transactions else default_currency
    summary = summarize_source(
        transactions, has_balance=columns.get("balance") is not None, currency=currency
    )

    logger.info(f"Normalized {len(transactions)} transactions from {source_file}")
    return NormalizedSource(
        source_file=source_file,
        transactions=transactions,
        summary=summary,
        currency=currency,
        sheet_name=sheet_name,
    )


def normalize_workbook(
    sheets: Mapping[str, Sequence[Sequence[Any]]],
    source_file: str,
    default_currency: str = DEFAULT_CURRENCY,
) -> NormalizedSource:
    """Normalize every sheet; the sheet with the most transactions represents the file."""
    best: Optional[NormalizedSource] = None
    for sheet_name, grid in sheets.items():
        result = normalize_grid(grid, source_file, default_currency, sheet_name)
        if best is None or len(result.transactions) > len(best.transactions):
            best = result

    if best is None:
        return NormalizedSource(
            source_file=source_file,
            summary=BankStatementSummary(currency=default_currency),
            currency=default_currency,
        )
    return best
