"""Statements service - runs the ingestion pipeline for the routers.

Keeps the HTTP layer free of engine details: converts engine results into
response schemas and engine errors into application errors.
"""

import json
from typing import Any, Mapping, Optional, Sequence

import structlog

from apps.api.core.config import Settings
from apps.api.core.errors import ValidationError
from apps.api.domains.statements.schemas import IngestResponse
from packages.statement_engine.pipeline import StatementSource, ingest_statements

logger = structlog.get_logger()


def parse_number_map(raw: Optional[str], field: str) -> dict[str, float]:
    """Decode a multipart JSON object field of key -> number.

    Used for `opening_balances` (filename -> amount) and `conversion_rates`
    (currency code -> rate).
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{field} is not valid JSON: {e.msg}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"{field} must be a JSON object")
    try:
        return {str(key): float(value) for key, value in data.items()}
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} values must be numbers") from e


def run_ingestion(
    sources: Sequence[StatementSource],
    settings: Settings,
    period_start: Any = None,
    period_end: Any = None,
    opening_balances: Optional[Mapping[str, float]] = None,
    conversion_rates: Optional[Mapping[str, float]] = None,
) -> IngestResponse:
    """Ingest every source for one filing period.

    Sources in another currency are converted to DEFAULT_CURRENCY with
    `conversion_rates` before they are merged.

    Raises:
        ValidationError: the period bounds are invalid, or a rate is missing
            or not positive.
    """
    try:
        result = ingest_statements(
            sources,
            period_start=period_start,
            period_end=period_end,
            opening_balance_overrides=opening_balances,
            default_currency=settings.DEFAULT_CURRENCY,
            max_workers=settings.INGEST_MAX_WORKERS,
            conversion_rates=conversion_rates,
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e

    for failure in result.failures:
        logger.warning("statement_unreadable", filename=failure.source_file, reason=failure.reason)
    logger.info(
        "statements_ingested",
        sources=len(sources),
        transactions=len(result.transactions),
        unparsed=len(result.unparsed),
        failures=len(result.failures),
    )

    data = result.to_dict()
    data["count"] = len(result.transactions)
    return IngestResponse.model_validate(data)
