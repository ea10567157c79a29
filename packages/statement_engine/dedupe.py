"""
Deduplicator - removes extraction artifacts from a normalized stream.

Duplicates are keyed per source file, so the same payment appearing on two
different accounts' statements is kept twice.
"""

import logging
from datetime import date
from typing import Iterable, List

from .models import Transaction

logger = logging.getLogger(__name__)

# Descriptions shorter than this on an amount-less row are treated as fragments
FRAGMENT_MAX_LENGTH = 6


def _date_key(value) -> str:
    if isinstance(value, date):
        return value.isoformat()
    return str(value or "").strip()


def transaction_key(t: Transaction) -> str:
    """
    Canonical identity of a transaction within one normalization run.

    Format: source|date|description|debit|credit|balance|CURRENCY[|idxN]
    """
    key = (
        f"{(t.source_file or '').strip().lower()}"
        f"|{_date_key(t.date)}"
        f"|{(t.description or '').strip().lower()}"
        f"|{(t.debit or 0):.2f}"
        f"|{(t.credit or 0):.2f}"
        f"|{(t.balance or 0):.2f}"
        f"|{(t.currency or '').strip().upper()}"
    )
    if t.original_index is not None:
        key += f"|idx{t.original_index}"
    return key


def _is_fragment_of(prev: Transaction, current: Transaction) -> bool:
    """
    Whether `prev` is the first half of a row OCR split in two.

    The fragment carries the date and a stub description but no amounts;
    its balance is either empty or the same running balance as `current`.
    """
    prev_desc = (prev.description or "").strip()
    current_desc = (current.description or "").strip()
    if prev.source_file != current.source_file:
        return False
    if _date_key(prev.date) != _date_key(current.date):
        return False
    if len(prev_desc) >= FRAGMENT_MAX_LENGTH or len(current_desc) <= len(prev_desc):
        return False
    if prev.debit != 0 or prev.credit != 0:
        return False
    return prev.balance == 0 or prev.balance == current.balance


def dedupe(transactions: Iterable[Transaction]) -> List[Transaction]:
    """
    Drop exact duplicates and fold split rows into one.

    Idempotent: running it on its own output changes nothing.
    """
    result: List[Transaction] = []
    seen = set()
    dropped = repaired = 0

    for t in transactions:
        key = transaction_key(t)
        if key in seen:
            dropped += 1
            continue

        if result and _is_fragment_of(result[-1], t):
            result[-1] = t
            seen.add(key)
            repaired += 1
            continue

        result.append(t)
        seen.add(key)

    if dropped or repaired:
        logger.info(f"Dedupe removed {dropped} duplicates and repaired {repaired} fragments")
    return result
