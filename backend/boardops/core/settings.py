# backend/boardops/core/settings.py
"""
BoardOps - Configuration Management with pydantic-settings

- Loads from environment and root .env
- Validates and normalizes values
- Cached singleton via get_settings()
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# backend/boardops/core/settings.py -> <repo>/.env
_ENV_FILE = Path(__file__).resolve().parent.parent.parent.parent / ".env"


class Settings(BaseSettings):
    """
    Application settings with validation.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===================
    # Application Settings
    # ===================
    PROJECT_NAME: str = "BoardOps"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="Deployment environment")

    # ===================
    # Database Settings
    # ===================
    DATABASE_URL: str = Field(
        default="sqlite:///./boardops.db", description="SQLAlchemy database URL"
    )
    DB_ECHO: bool = Field(default=False, description="Log every SQL statement")

    @property
    def database_url(self) -> str:
        return self.DATABASE_URL

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    # ===================
    # CORS Settings
    # ===================
    ALLOWED_ORIGINS: List[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins",
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # ===================
    # Logging
    # ===================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text
    LOG_FILE: Optional[str] = None

    @field_validator("LOG_FORMAT")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower().strip()
        if v not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v

    # ===================
    # Production Planning
    # ===================
    ORDER_SETUP_TIME_MINUTES: int = Field(default=30, ge=0, description="Fixed setup time per order")
    DEFAULT_UNIT_BUILD_MINUTES: int = Field(
        default=10, gt=0, description="Build time per unit when the product has none"
    )
    # Reject completion when any component is short instead of flooring stock at zero
    STRICT_COMPLETION: bool = False

    # ===================
    # Stock Alerts & Purchasing
    # ===================
    ALERT_MIN_ORDER_QUANTITY: int = Field(default=10, ge=0)
    ALERT_STOCK_MULTIPLIER: int = Field(default=2, ge=1)
    URGENCY_HIGH_RATIO: float = Field(default=0.5, gt=0, le=1)
    URGENCY_MEDIUM_RATIO: float = Field(default=0.8, gt=0, le=1)

    # ===================
    # Dashboard
    # ===================
    DASHBOARD_TOP_COMPONENTS: int = Field(default=5, ge=1)

@lru_cache
def get_settings() -> Settings:
    """Singleton settings loader (cached)."""
    return Settings()


# Convenience alias
settings = get_settings()
