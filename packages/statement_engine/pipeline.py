"""
End-to-end ingestion: files -> normalized, deduplicated ledger -> period
ledger + summary.

Each source file is normalized on its own (they share no state), so that
step fans out over a thread pool. Merging waits for every file; a file that
cannot be read is reported in `failures` and its siblings carry on.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .currency import convert_summary, convert_transaction
from .dedupe import dedupe
from .extraction import from_extracted
from .models import DEFAULT_CURRENCY, BankStatementSummary, NormalizedSource, Transaction
from .normalizer import normalize_workbook
from .period import filter_and_summarize
from .statement_check import StatementCheck, check_statements
from .workbook import UnreadableStatementError, read_grids

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4


@dataclass
class StatementFile:
    """A tabular upload (spreadsheet or CSV)."""

    filename: str
    content: bytes
    password: Optional[str] = None


@dataclass
class ExtractedStatement:
    """Output of the external extraction service for a PDF or image."""

    filename: str
    payload: Mapping[str, Any]


StatementSource = Union[StatementFile, ExtractedStatement]


@dataclass
class IngestionFailure:
    source_file: str
    reason: str

    def to_dict(self) -> dict:
        return {"source_file": self.source_file, "reason": self.reason}


@dataclass
class IngestionResult:
    transactions: List[Transaction] = field(default_factory=list)
    summary: BankStatementSummary = field(default_factory=BankStatementSummary)
    file_summaries: Dict[str, BankStatementSummary] = field(default_factory=dict)
    statement_checks: Dict[str, StatementCheck] = field(default_factory=dict)
    unparsed: List[Transaction] = field(default_factory=list)
    failures: List[IngestionFailure] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "transactions": [t.to_dict() for t in self.transactions],
            "summary": self.summary.to_dict(),
            "file_summaries": {k: v.to_dict() for k, v in self.file_summaries.items()},
            "statement_checks": {k: v.to_dict() for k, v in self.statement_checks.items()},
            "unparsed": [t.to_dict() for t in self.unparsed],
            "failures": [f.to_dict() for f in self.failures],
        }


def normalize_source(
    source: StatementSource, default_currency: str = DEFAULT_CURRENCY
) -> NormalizedSource:
    """Normalize and dedupe a single source. Raises UnreadableStatementError."""
    if isinstance(source, ExtractedStatement):
        normalized = from_extracted(source.payload, source.filename, default_currency)
    else:
        sheets = read_grids(source.content, source.filename, source.password)
        normalized = normalize_workbook(sheets, source.filename, default_currency)

    normalized.transactions = dedupe(normalized.transactions)
    return normalized


def convert_source(
    source: NormalizedSource,
    conversion_rates: Mapping[str, float],
    base_currency: str = DEFAULT_CURRENCY,
) -> NormalizedSource:
    """
    Bring one normalized source into the filing currency.

    Rates map a currency code to units of `base_currency` per unit.

    Raises:
        ValueError: a currency in the source has no rate.
    """
    rates = {code.strip().upper(): rate for code, rate in conversion_rates.items()}
    needed = {t.currency for t in source.transactions} | {source.summary.currency}
    needed.discard(base_currency)
    if not needed:
        return source

    missing = sorted(needed - set(rates))
    if missing:
        raise ValueError(
            f"No conversion rate to {base_currency} for {', '.join(missing)} "
            f"in {source.source_file}"
        )

    source.transactions = [
        t if t.currency == base_currency else convert_transaction(t, rates[t.currency], base_currency)
        for t in source.transactions
    ]
    if source.summary.currency != base_currency:
        source.summary = convert_summary(
            source.summary, rates[source.summary.currency], base_currency
        )
    logger.info(f"Converted {source.source_file} from {', '.join(sorted(needed))} to {base_currency}")
    source.currency = base_currency
    return source


def _safe_normalize(source: StatementSource, default_currency: str):
    try:
        return normalize_source(source, default_currency)
    except UnreadableStatementError as e:
        logger.warning(f"Skipping {source.filename}: {e.reason}")
        return IngestionFailure(source_file=source.filename, reason=e.reason)


def ingest_statements(
    sources: Sequence[StatementSource],
    period_start: Any = None,
    period_end: Any = None,
    opening_balance_overrides: Optional[Mapping[str, float]] = None,
    default_currency: str = DEFAULT_CURRENCY,
    max_workers: int = DEFAULT_MAX_WORKERS,
    conversion_rates: Optional[Mapping[str, float]] = None,
) -> IngestionResult:
    """
    Run the whole ingestion for one filing period.

    Args:
        sources: uploaded files and/or extraction payloads.
        period_start / period_end: inclusive filing window.
        opening_balance_overrides: user-confirmed opening balances per file,
            in the filing currency; they replace the derived balances.
        conversion_rates: currency code -> units of `default_currency`; every
            source in another currency is converted before merging.
        max_workers: per-file normalization threads.

    Raises:
        ValueError: the period bounds are invalid, or a source's currency
            has no conversion rate.
    """
    workers = max(1, min(max_workers, len(sources) or 1))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        # map() preserves source order, and leaving the block joins every worker
        outcomes = list(pool.map(lambda s: _safe_normalize(s, default_currency), sources))

    result = IngestionResult()
    merged: List[Transaction] = []
    for outcome in outcomes:
        if isinstance(outcome, IngestionFailure):
            result.failures.append(outcome)
            continue
        outcome = convert_source(outcome, conversion_rates or {}, default_currency)
        result.file_summaries[outcome.source_file] = outcome.summary
        merged.extend(outcome.transactions)
    # Catches the same file uploaded twice
    merged = dedupe(merged)

    overrides = opening_balance_overrides or {}
    for name, opening in overrides.items():
        if name in result.file_summaries:
            result.file_summaries[name].opening_balance = float(opening)

    opening_balances = {
        name: summary.opening_balance for name, summary in result.file_summaries.items()
    }
    currencies = {s.currency for s in result.file_summaries.values()}
    currency = currencies.pop() if len(currencies) == 1 else default_currency

    period = filter_and_summarize(
        merged,
        period_start,
        period_end,
        opening_balances=opening_balances,
        currency=currency,
    )
    result.transactions = period.transactions
    result.summary = period.summary
    result.unparsed = period.unparsed
    result.statement_checks = check_statements(result.file_summaries, merged)

    logger.info(
        f"Ingested {len(sources)} sources: {len(merged)} transactions, "
        f"{len(result.transactions)} in period, {len(result.failures)} failed"
    )
    return result
