"""
Reconciliation Matcher - pairs bank transactions with invoices.

Automatic matching is a greedy single pass: transactions in date order each
take the best eligible invoice that is still free. It is not an optimal
assignment; every suggestion is meant to be reviewed, and `reassign` lets a
reviewer override any pairing (including reusing an invoice).
"""

import logging
import re
from dataclasses import asdict, dataclass, replace
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from .dates import parse_date_or_none
from .models import NO_DIRECTION, Invoice, Transaction

logger = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.1
# Party-name tokens this short are too generic to match on ("al", "co")
MIN_NAME_TOKEN_LENGTH = 3

MATCHED = "Matched"
UNMATCHED = "Unmatched"

REASON_NO_INVOICE = "No Selected Invoice"
REASON_NO_DIRECTION = "Bank transaction has no clear debit/credit direction"
REASON_DIRECTION_MISMATCH = "Direction mismatch (Sales vs Purchase)"
REASON_AMOUNT_MISMATCH = "Amount mismatch"
REASON_MATCH = "Exact amount and direction match"

_WHITESPACE = re.compile(r"\s+")


@dataclass
class Assignment:
    """Pairing of one transaction (by index) with at most one invoice."""

    transaction_index: int
    invoice_index: Optional[int]
    status: str
    reason: str
    manual: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


AssignmentMap = Dict[int, Assignment]


def amounts_match(a: float, b: float, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    # Round away float noise so 1500.1 vs 1500.0 sits inside a 0.1 tolerance
    return round(abs(a - b), 6) <= tolerance


def is_eligible(t: Transaction, invoice: Invoice, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    """Direction agrees and the amount is within tolerance."""
    direction = t.direction
    if direction == NO_DIRECTION or direction != invoice.direction:
        return False
    return amounts_match(t.amount, invoice.target_amount, tolerance)


def evaluate(
    t: Transaction, invoice: Optional[Invoice], tolerance: float = AMOUNT_TOLERANCE
) -> Tuple[str, str]:
    """Status and reason for a (transaction, invoice) pairing."""
    if invoice is None:
        return UNMATCHED, REASON_NO_INVOICE
    if t.direction == NO_DIRECTION:
        return UNMATCHED, REASON_NO_DIRECTION
    if t.direction != invoice.direction:
        return UNMATCHED, REASON_DIRECTION_MISMATCH
    if not amounts_match(t.amount, invoice.target_amount, tolerance):
        return UNMATCHED, REASON_AMOUNT_MISMATCH
    return MATCHED, REASON_MATCH


def _normalize_text(text: str) -> str:
    return _WHITESPACE.sub(" ", (text or "").lower()).strip()


def name_token(invoice: Invoice) -> Optional[str]:
    """First token of the counterparty name, if long enough to be telling."""
    tokens = _normalize_text(invoice.party_name).split(" ")
    first = tokens[0] if tokens else ""
    return first if len(first) >= MIN_NAME_TOKEN_LENGTH else None


def _order_key(value, index: int):
    parsed: Optional[date] = parse_date_or_none(value)
    return (parsed is None, parsed or date.min, index)


def _pick_candidate(t: Transaction, candidates: List[int], invoices: Sequence[Invoice]) -> int:
    # Bank exports often put the counterparty in a category column or the file name
    text = _normalize_text(" ".join(filter(None, (t.description, t.category, t.source_file))))
    for i in candidates:
        token = name_token(invoices[i])
        if token and token in text:
            return i
    return candidates[0]


def match_all(
    transactions: Sequence[Transaction],
    invoices: Sequence[Invoice],
    tolerance: float = AMOUNT_TOLERANCE,
) -> AssignmentMap:
    """
    Suggest a pairing for every transaction.

    Transactions are visited in (date, position) order; candidates are the
    unconsumed invoices with matching direction and amount, ordered by
    (invoice_date, position). A candidate whose party name appears in the
    description, category or source file name wins, otherwise the earliest one. A chosen invoice is
    consumed, so no invoice is suggested twice.
    """
    invoice_order = sorted(
        range(len(invoices)), key=lambda i: _order_key(invoices[i].invoice_date, i)
    )
    txn_order = sorted(
        range(len(transactions)), key=lambda i: _order_key(transactions[i].date, i)
    )

    consumed = set()
    assignments: AssignmentMap = {}
    for ti in txn_order:
        t = transactions[ti]
        candidates = [
            ii
            for ii in invoice_order
            if ii not in consumed and is_eligible(t, invoices[ii], tolerance)
        ]
        if not candidates:
            if t.direction == NO_DIRECTION:
                reason = REASON_NO_DIRECTION
            else:
                reason = REASON_NO_INVOICE
            assignments[ti] = Assignment(ti, None, UNMATCHED, reason)
            continue

        chosen = _pick_candidate(t, candidates, invoices)
        consumed.add(chosen)
        assignments[ti] = Assignment(ti, chosen, MATCHED, REASON_MATCH)

    matched = sum(1 for a in assignments.values() if a.status == MATCHED)
    logger.info(f"Matched {matched} of {len(transactions)} transactions to {len(invoices)} invoices")
    return dict(sorted(assignments.items()))


def reassign(
    assignments: AssignmentMap,
    transactions: Sequence[Transaction],
    invoices: Sequence[Invoice],
    transaction_index: int,
    invoice_index: Optional[int],
    tolerance: float = AMOUNT_TOLERANCE,
) -> AssignmentMap:
    """
    Apply a manual override and return a new map.

    The status is recomputed from direction and amount only. Uniqueness is
    not enforced here: a reviewer may deliberately point two transactions at
    the same invoice.

    Raises:
        IndexError: either index is outside its list.
    """
    if not 0 <= transaction_index < len(transactions):
        raise IndexError(f"transaction index {transaction_index} out of range")
    if invoice_index is not None and not 0 <= invoice_index < len(invoices):
        raise IndexError(f"invoice index {invoice_index} out of range")

    invoice = invoices[invoice_index] if invoice_index is not None else None
    status, reason = evaluate(transactions[transaction_index], invoice, tolerance)

    updated = {k: replace(v) for k, v in assignments.items()}
    updated[transaction_index] = Assignment(
        transaction_index, invoice_index, status, reason, manual=True
    )
    return dict(sorted(updated.items()))


def revalidate(
    assignments: AssignmentMap,
    transactions: Sequence[Transaction],
    invoices: Sequence[Invoice],
    tolerance: float = AMOUNT_TOLERANCE,
) -> AssignmentMap:
    """Recompute every status after the underlying records were edited."""
    updated: AssignmentMap = {}
    for ti, a in assignments.items():
        if ti >= len(transactions):
            continue
        invoice = None
        if a.invoice_index is not None and a.invoice_index < len(invoices):
            invoice = invoices[a.invoice_index]
        status, reason = evaluate(transactions[ti], invoice, tolerance)
        updated[ti] = replace(
            a, invoice_index=a.invoice_index if invoice else None, status=status, reason=reason
        )
    return updated


@dataclass
class ReconciliationStats:
    total: int
    matched: int
    percentage: int
    unmatched_invoices: List[int]

    def to_dict(self) -> dict:
        return asdict(self)


def summarize_assignments(assignments: AssignmentMap, invoice_count: int) -> ReconciliationStats:
    total = len(assignments)
    matched = sum(1 for a in assignments.values() if a.status == MATCHED)
    used = {a.invoice_index for a in assignments.values() if a.status == MATCHED}
    return ReconciliationStats(
        total=total,
        matched=matched,
        percentage=round(matched / total * 100) if total else 0,
        unmatched_invoices=[i for i in range(invoice_count) if i not in used],
    )
