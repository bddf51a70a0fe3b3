"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # HTTP server
    PORT: int = 3080
    CORS_ALLOWED_ORIGINS: str = "*"

    # CRM (Close-style lead API)
    CRM_API_KEY: str = ""
    CRM_BASE_URL: str = "https://api.close.com/api/v1"
    CRM_LEAD_FILTER: str = ""  # Lead search query / saved filter applied server-side
    CRM_PAGE_SIZE: int = 100
    CRM_TIMEOUT: float = 30.0

    # Lead custom-field keys read during reconciliation
    CRM_URL_FIELD: str = ""  # Field holding the source project URL
    CRM_STAGE_FIELD: str = ""  # Field holding the lead's recorded stage

    def get_cors_origins(self) -> list[str]:
        """Return the CORS allow-list parsed from CORS_ALLOWED_ORIGINS."""
        if self.CORS_ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ALLOWED_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
