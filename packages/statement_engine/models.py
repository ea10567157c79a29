"""Canonical ledger, summary and invoice records."""

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from typing import Any, Dict, Optional, Union

from .dates import ParsedDate, parse_date

DEFAULT_CURRENCY = "AED"

CREDIT = "credit"
DEBIT = "debit"
NO_DIRECTION = "none"

SALES = "sales"
PURCHASE = "purchase"


def _date_to_json(value: Union[date, str, None]) -> Optional[str]:
    if isinstance(value, date):
        return value.isoformat()
    return value


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _optional_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return _number(value)


@dataclass
class Transaction:
    """One ledger line."""

    date: Union[date, str]
    description: str = ""
    debit: float = 0.0
    credit: float = 0.0
    balance: float = 0.0
    currency: str = DEFAULT_CURRENCY
    source_file: str = ""
    original_index: Optional[int] = None
    confidence: Optional[float] = None
    category: str = ""
    # Populated by currency conversion
    original_currency: Optional[str] = None
    original_debit: Optional[float] = None
    original_credit: Optional[float] = None
    original_balance: Optional[float] = None

    @property
    def direction(self) -> str:
        if self.credit >= self.debit and self.credit > 0:
            return CREDIT
        if self.debit > self.credit and self.debit > 0:
            return DEBIT
        return NO_DIRECTION

    @property
    def amount(self) -> float:
        """Magnitude in the transaction's direction (0 when it has none)."""
        direction = self.direction
        if direction == CREDIT:
            return self.credit
        if direction == DEBIT:
            return self.debit
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["date"] = _date_to_json(self.date)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Transaction":
        """Rebuild from a draft dict. Unparseable dates are kept as the raw string."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for key in ("debit", "credit", "balance"):
            values[key] = _number(values.get(key))
        for key in ("original_debit", "original_credit", "original_balance", "confidence"):
            if key in values:
                values[key] = _optional_number(values[key])
        parsed = parse_date(values.get("date"))
        if isinstance(parsed, ParsedDate):
            values["date"] = parsed.value
        else:
            values["date"] = str(values.get("date") or "")
        values["description"] = str(values.get("description") or "")
        values["currency"] = str(values.get("currency") or DEFAULT_CURRENCY).upper()
        return cls(**values)


@dataclass
class BankStatementSummary:
    """Per-file or per-period aggregate."""

    opening_balance: float = 0.0
    closing_balance: float = 0.0
    total_deposits: float = 0.0
    total_withdrawals: float = 0.0
    account_holder: str = ""
    account_number: str = ""
    statement_period: str = ""
    currency: str = DEFAULT_CURRENCY

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "BankStatementSummary":
        data = data or {}
        return cls(
            opening_balance=_number(data.get("opening_balance")),
            closing_balance=_number(data.get("closing_balance")),
            total_deposits=_number(data.get("total_deposits")),
            total_withdrawals=_number(data.get("total_withdrawals")),
            account_holder=str(data.get("account_holder") or ""),
            account_number=str(data.get("account_number") or ""),
            statement_period=str(data.get("statement_period") or ""),
            currency=str(data.get("currency") or DEFAULT_CURRENCY).upper(),
        )


@dataclass
class Invoice:
    """Sales or purchase invoice with AED-normalized totals."""

    invoice_id: str
    invoice_type: str
    invoice_date: str = ""
    vendor_name: str = ""
    customer_name: str = ""
    currency: str = DEFAULT_CURRENCY
    total_before_tax: float = 0.0
    total_tax: float = 0.0
    zero_rated: float = 0.0
    total_amount: float = 0.0
    total_before_tax_aed: Optional[float] = None
    total_tax_aed: Optional[float] = None
    zero_rated_aed: Optional[float] = None
    total_amount_aed: Optional[float] = None
    confidence: Optional[float] = None

    @property
    def direction(self) -> str:
        if self.invoice_type == SALES:
            return CREDIT
        if self.invoice_type == PURCHASE:
            return DEBIT
        return NO_DIRECTION

    @property
    def party_name(self) -> str:
        """Counterparty as it would appear on the bank line."""
        return self.customer_name if self.invoice_type == SALES else self.vendor_name

    @property
    def target_amount(self) -> float:
        """AED total when known, raw total otherwise."""
        if self.total_amount_aed:
            return self.total_amount_aed
        return self.total_amount

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Invoice":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for key in ("total_before_tax", "total_tax", "zero_rated", "total_amount"):
            values[key] = _number(values.get(key))
        for key in ("total_before_tax_aed", "total_tax_aed", "zero_rated_aed", "total_amount_aed", "confidence"):
            if key in values:
                values[key] = _optional_number(values[key])
        values["invoice_id"] = str(values.get("invoice_id") or "")
        values["invoice_type"] = str(values.get("invoice_type") or "").strip().lower()
        return cls(**values)


@dataclass
class NormalizedSource:
    """Output of normalizing one source file."""

    source_file: str
    transactions: list = field(default_factory=list)
    summary: BankStatementSummary = field(default_factory=BankStatementSummary)
    currency: str = DEFAULT_CURRENCY
    sheet_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_file": self.source_file,
            "transactions": [t.to_dict() for t in self.transactions],
            "summary": self.summary.to_dict(),
            "currency": self.currency,
            "sheet_name": self.sheet_name,
        }
