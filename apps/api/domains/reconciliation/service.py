"""Reconciliation service - bridges request schemas and the matcher."""

import structlog

from apps.api.core.errors import NotFoundError
from apps.api.domains.reconciliation.schemas import (
    MatchRequest,
    MatchResponse,
    ReassignRequest,
)
from packages.statement_engine.matcher import (
    Assignment,
    AssignmentMap,
    match_all,
    reassign,
    summarize_assignments,
)
from packages.statement_engine.models import Invoice, Transaction

logger = structlog.get_logger()


def _records(request: MatchRequest) -> tuple[list[Transaction], list[Invoice]]:
    transactions = [Transaction.from_dict(t.model_dump()) for t in request.transactions]
    invoices = [Invoice.from_dict(i.model_dump()) for i in request.invoices]
    return transactions, invoices


def _response(assignments: AssignmentMap, invoice_count: int) -> MatchResponse:
    stats = summarize_assignments(assignments, invoice_count)
    return MatchResponse.model_validate(
        {
            "assignments": [a.to_dict() for a in assignments.values()],
            "stats": stats.to_dict(),
        }
    )


def match(request: MatchRequest, tolerance: float) -> MatchResponse:
    transactions, invoices = _records(request)
    assignments = match_all(transactions, invoices, tolerance)
    response = _response(assignments, len(invoices))
    logger.info(
        "reconciliation_matched",
        transactions=len(transactions),
        invoices=len(invoices),
        matched=response.stats.matched,
    )
    return response


def apply_override(request: ReassignRequest, tolerance: float) -> MatchResponse:
    """Re-evaluate one pairing chosen by the reviewer.

    Raises:
        NotFoundError: the transaction or invoice index does not exist.
    """
    transactions, invoices = _records(request)
    current: AssignmentMap = {
        a.transaction_index: Assignment(**a.model_dump()) for a in request.assignments
    }
    try:
        updated = reassign(
            current,
            transactions,
            invoices,
            request.transaction_index,
            request.invoice_index,
            tolerance,
        )
    except IndexError as e:
        raise NotFoundError(str(e)) from e

    changed = updated[request.transaction_index]
    logger.info(
        "reconciliation_override",
        transaction_index=changed.transaction_index,
        invoice_index=changed.invoice_index,
        status=changed.status,
    )
    return _response(updated, len(invoices))
