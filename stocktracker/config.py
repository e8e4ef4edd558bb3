"""
Application configuration using Pydantic Settings.

Loads configuration from TRACKER_* environment variables and an optional
.env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    DB_FILE: str = "portfolio.db"
    DEFAULT_PORTFOLIO_NAME: str = "My Portfolio"

    # Quotes
    QUOTE_SOURCE: Literal["yahoo", "public", "simulated"] = "yahoo"
    QUOTE_TIMEOUT: float = 10.0
    PUBLIC_API_KEY: str = ""
    PUBLIC_ACCOUNT_ID: str = ""

    # Refresh
    REFRESH_INTERVAL: float = 30.0
    DEMO_REFRESH_INTERVAL: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"

    @property
    def refresh_interval_for_source(self) -> float:
        """Seconds between refresh ticks for the configured quote source."""
        if self.QUOTE_SOURCE == "simulated":
            return self.DEMO_REFRESH_INTERVAL
        return self.REFRESH_INTERVAL
