"""Pydantic schemas for the reconciliation domain."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class TransactionIn(BaseModel):
    date: str = ""
    description: str = ""
    debit: float = Field(default=0.0, ge=0)
    credit: float = Field(default=0.0, ge=0)
    balance: float = 0.0
    currency: str = "AED"
    source_file: str = ""
    original_index: Optional[int] = None


class InvoiceIn(BaseModel):
    invoice_id: str
    invoice_type: Literal["sales", "purchase"]
    invoice_date: str = ""
    vendor_name: str = ""
    customer_name: str = ""
    currency: str = "AED"
    total_before_tax: float = 0.0
    total_tax: float = 0.0
    zero_rated: float = 0.0
    total_amount: float = 0.0
    total_before_tax_aed: Optional[float] = None
    total_tax_aed: Optional[float] = None
    zero_rated_aed: Optional[float] = None
    total_amount_aed: Optional[float] = None


class AssignmentOut(BaseModel):
    transaction_index: int
    invoice_index: Optional[int] = None
    status: Literal["Matched", "Unmatched"]
    reason: str
    manual: bool = False


class StatsOut(BaseModel):
    total: int
    matched: int
    percentage: int
    unmatched_invoices: list[int]


class MatchRequest(BaseModel):
    transactions: list[TransactionIn]
    invoices: list[InvoiceIn]


class ReassignRequest(MatchRequest):
    """Manual override: point one transaction at an invoice, or clear it."""

    assignments: list[AssignmentOut]
    transaction_index: int
    invoice_index: Optional[int] = None


class MatchResponse(BaseModel):
    assignments: list[AssignmentOut]
    stats: StatsOut
