"""Health check router - liveness + readiness.

Readiness confirms the spreadsheet readers the engine depends on can be
loaded; a missing optional reader would otherwise only surface on the
first upload.
"""

import importlib

import structlog
from fastapi import APIRouter, Depends

from apps.api.core.config import Settings, get_settings

router = APIRouter(tags=["health"])
logger = structlog.get_logger()

# Module name -> what breaks without it
READERS = {
    "openpyxl": "xlsx",
    "msoffcrypto": "encrypted workbooks",
}


@router.get("/health")
async def health_liveness(settings: Settings = Depends(get_settings)):
    """Liveness check - returns 200 if the API process is running."""
    return {"status": "healthy", "service": "api", "version": settings.APP_VERSION}


@router.get("/health/ready")
async def health_readiness():
    """Readiness check - checks that every statement reader is importable."""
    status = {"status": "healthy", "services": {"api": "up"}}

    for module, feature in READERS.items():
        try:
            importlib.import_module(module)
            status["services"][module] = "up"
        except ImportError as e:
            status["services"][module] = "down"
            status["status"] = "degraded"
            logger.warning("reader_unavailable", module=module, feature=feature, error=str(e))

    return status
