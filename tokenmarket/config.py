"""Runtime configuration — env-driven.

Centralized settings using pydantic-settings.  Reads from a .env file and
TOKENMARKET_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketSettings(BaseSettings):
    """Engine and CLI configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export TOKENMARKET_DB_PATH=/data/market.db
        export TOKENMARKET_LISTING_FEE=5
        export TOKENMARKET_LOG_LEVEL=DEBUG

    Or via .env file::

        TOKENMARKET_ENVIRONMENT=production
        TOKENMARKET_OPERATOR=treasury
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TOKENMARKET_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    db_path: Path = Path(".tokenmarket/market.db")

    # Marketplace bootstrap (only applied when the market is first created)
    market_address: str = "market"
    operator: str = "operator"
    listing_fee: int = Field(default=25, ge=0)
    registry_ref: str = "default"

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton: import as `from tokenmarket.config import settings`
settings = MarketSettings()
