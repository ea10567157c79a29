"""Reconciliation router - invoice matching and manual overrides."""

from fastapi import APIRouter, Depends

from apps.api.core.config import Settings, get_settings
from apps.api.domains.reconciliation import service
from apps.api.domains.reconciliation.schemas import (
    MatchRequest,
    MatchResponse,
    ReassignRequest,
)

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/match", response_model=MatchResponse)
def match_transactions(request: MatchRequest, settings: Settings = Depends(get_settings)):
    """Suggest one invoice per transaction. Suggestions never share an invoice."""
    return service.match(request, settings.AMOUNT_TOLERANCE)


@router.post("/reassign", response_model=MatchResponse)
def reassign_transaction(request: ReassignRequest, settings: Settings = Depends(get_settings)):
    """Apply a reviewer's override; status and reason are recomputed, reuse is allowed."""
    return service.apply_override(request, settings.AMOUNT_TOLERANCE)
