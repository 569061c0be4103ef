"""Configuration management using Pydantic Settings"""

from decimal import Decimal
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Database
    database_url: str = "sqlite:///./ledger.db"

    # Service
    service_name: str = "personal-ledger"
    log_level: str = "INFO"

    # Ledger rules
    transaction_ceiling: Decimal = Decimal("1000000")
    description_max_length: int = 100
    repaid_epsilon: Decimal = Decimal("0.01")

    # Sweep scheduler
    sweep_scheduler_enabled: bool = True
    sweep_interval_seconds: float = 86400.0  # One tick per day
    scheduler_shutdown_grace_seconds: float = 1.0


settings = Settings()
