"""Statement Engine API - FastAPI entry point.

Routes are served from domain modules under apps/api/domains/; the health
checks live in apps/api/routers/.
"""

import structlog
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api.core.config import settings
from apps.api.core.errors import register_error_handlers
from apps.api.core.logging import setup_logging

from apps.api.domains.statements.router import router as statements_router
from apps.api.domains.reconciliation.router import router as reconciliation_router
from apps.api.routers import health

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup/shutdown hooks."""
    setup_logging(log_level=settings.log_level, json_output=settings.json_logs)
    logger.info("app_starting", version=settings.APP_VERSION, environment=settings.ENVIRONMENT)
    yield
    logger.info("app_stopping")


app = FastAPI(
    title="Statement Engine API",
    description="Bank statement ingestion, period balances and invoice reconciliation.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(statements_router, prefix="/api/v1")
app.include_router(reconciliation_router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")
