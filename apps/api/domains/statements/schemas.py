"""Pydantic schemas for the statements domain."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class TransactionOut(BaseModel):
    """A normalized ledger line. `date` is ISO, or the raw text when unparseable."""

    date: str
    description: str = ""
    debit: float = 0.0
    credit: float = 0.0
    balance: float = 0.0
    currency: str = "AED"
    source_file: str = ""
    original_index: Optional[int] = None
    confidence: Optional[float] = None
    category: str = ""
    original_currency: Optional[str] = None
    original_debit: Optional[float] = None
    original_credit: Optional[float] = None
    original_balance: Optional[float] = None


class SummaryOut(BaseModel):
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0
    account_holder: str = ""
    account_number: str = ""
    statement_period: str = ""
    currency: str = "AED"


class StatementCheckOut(BaseModel):
    """Whether a file's own opening + credits - debits reaches its closing balance."""

    source_file: str
    currency: str
    opening_balance: float
    total_debit: float
    total_credit: float
    calculated_closing: float
    closing_balance: float
    difference: float
    is_valid: bool


class FailureOut(BaseModel):
    source_file: str
    reason: str


class IngestResponse(BaseModel):
    """Period ledger plus everything the reviewer needs to confirm it."""

    transactions: list[TransactionOut]
    summary: SummaryOut
    file_summaries: dict[str, SummaryOut] = Field(default_factory=dict)
    statement_checks: dict[str, StatementCheckOut] = Field(default_factory=dict)
    unparsed: list[TransactionOut] = Field(default_factory=list)
    failures: list[FailureOut] = Field(default_factory=list)
    count: int = 0


class ExtractedStatementIn(BaseModel):
    """Output of the extraction service for one PDF or image statement."""

    filename: str = Field(..., min_length=1)
    payload: dict[str, Any]


class ExtractedIngestRequest(BaseModel):
    statements: list[ExtractedStatementIn] = Field(..., min_length=1)
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    opening_balances: dict[str, float] = Field(default_factory=dict)
    conversion_rates: dict[str, float] = Field(default_factory=dict)
