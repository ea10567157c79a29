"""Centralized application configuration via Pydantic Settings.

Loads all env vars into a typed Settings instance. Engine defaults
(filing currency, matching tolerance, worker count) are read from here by
the routers and passed down explicitly; the engine itself never reads the
environment.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Engine
    DEFAULT_CURRENCY: str = Field(
        default="AED",
        description="Filing currency assumed when a statement does not state one",
    )
    AMOUNT_TOLERANCE: float = Field(
        default=0.1,
        ge=0,
        description="Largest amount difference still treated as a match",
    )
    INGEST_MAX_WORKERS: int = Field(
        default=4,
        ge=1,
        description="Threads used to normalize uploaded files in parallel",
    )

    # Uploads
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024,
        description="Per-file upload limit in bytes",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def json_logs(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = {"env_file": ".env", "extra": "ignore"}


def get_settings() -> Settings:
    """Factory for Settings - allows test override."""
    return Settings()


settings = get_settings()
