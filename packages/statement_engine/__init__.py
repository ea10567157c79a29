"""
Statement Engine

Bank statement ingestion, deduplication, period balance reconstruction and
invoice reconciliation.
"""

__version__ = "0.1.0"

from .dates import ParsedDate, UnparsedDate, parse_date
from .dedupe import dedupe
from .matcher import Assignment, evaluate, match_all, reassign
from .models import BankStatementSummary, Invoice, NormalizedSource, Transaction
from .normalizer import normalize_grid, normalize_workbook
from .period import PeriodResult, filter_and_summarize
from .pipeline import ExtractedStatement, StatementFile, ingest_statements
from .workbook import UnreadableStatementError, read_grids

normalize = normalize_workbook

__all__ = [
    "Assignment",
    "BankStatementSummary",
    "ExtractedStatement",
    "Invoice",
    "NormalizedSource",
    "ParsedDate",
    "PeriodResult",
    "StatementFile",
    "Transaction",
    "UnparsedDate",
    "UnreadableStatementError",
    "dedupe",
    "evaluate",
    "filter_and_summarize",
    "ingest_statements",
    "match_all",
    "normalize",
    "normalize_grid",
    "normalize_workbook",
    "parse_date",
    "read_grids",
    "reassign",
]
