"""Statements router - statement upload and period ledger endpoints."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.concurrency import run_in_threadpool

from apps.api.core.config import Settings, get_settings
from apps.api.core.errors import PayloadTooLargeError
from apps.api.domains.statements import service
from apps.api.domains.statements.schemas import ExtractedIngestRequest, IngestResponse
from packages.statement_engine.pipeline import ExtractedStatement, StatementFile

router = APIRouter(prefix="/statements", tags=["statements"])
logger = structlog.get_logger()


@router.post("/ingest", response_model=IngestResponse)
async def ingest_files(
    files: list[UploadFile] = File(...),
    period_start: Optional[str] = Form(None),
    period_end: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    opening_balances: Optional[str] = Form(None),
    conversion_rates: Optional[str] = Form(None),
    settings: Settings = Depends(get_settings),
):
    """Accept spreadsheet/CSV statements and return the period ledger.

    A file that cannot be read is listed under `failures`; the rest are
    still ingested. The password, when given, is tried on every encrypted
    workbook in the upload. `opening_balances` and `conversion_rates` are
    JSON objects (filename -> amount, currency code -> rate).
    """
    overrides = service.parse_number_map(opening_balances, "opening_balances")
    rates = service.parse_number_map(conversion_rates, "conversion_rates")

    sources = []
    for upload in files:
        filename = upload.filename or "upload"
        contents = await upload.read()
        if len(contents) > settings.MAX_UPLOAD_BYTES:
            logger.warning("upload_too_large", filename=filename, size=len(contents))
            raise PayloadTooLargeError(
                f"{filename} is too large (max {settings.MAX_UPLOAD_BYTES // (1024 * 1024)}MB)"
            )
        sources.append(StatementFile(filename=filename, content=contents, password=password or None))

    return await run_in_threadpool(
        service.run_ingestion,
        sources,
        settings,
        period_start,
        period_end,
        overrides,
        rates,
    )


@router.post("/extracted", response_model=IngestResponse)
def ingest_extracted(
    request: ExtractedIngestRequest,
    settings: Settings = Depends(get_settings),
):
    """Ingest statements that were already extracted from PDFs or images."""
    sources = [
        ExtractedStatement(filename=s.filename, payload=s.payload) for s in request.statements
    ]
    return service.run_ingestion(
        sources,
        settings,
        request.period_start,
        request.period_end,
        request.opening_balances,
        request.conversion_rates,
    )
