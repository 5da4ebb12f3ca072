from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Inspection Settlement"
    version: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    APP_DATABASE_DSN: str = "sqlite:////tmp/settlement.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"


class SettlementConfig(BaseModel):
    """Fixed constants shared by every settlement calculation."""

    model_config = ConfigDict(frozen=True)

    epoch: datetime = datetime(2024, 1, 1, tzinfo=UTC)
    period_length_days: int = 14
    agent_cashback_rate: Decimal = Decimal("0.15")
    clerk_commission_rate: Decimal = Decimal("0.30")
    payment_term_days: int = 30
    # Window in which a second cashback submission for the same agent is rejected
    cashback_resubmit_window_seconds: int = 30
    # Periods covered by the revenue overview, current one included
    summary_lookback_periods: int = 12


settings = Settings()

DEFAULT_CONFIG = SettlementConfig()
