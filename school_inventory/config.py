"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode connection strings or thresholds in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "School Inventory Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./school_inventory.db"
    )

    # Stock alerts
    LOW_STOCK_THRESHOLD: Decimal = Decimal(os.getenv("LOW_STOCK_THRESHOLD", "10"))
    CRITICAL_STOCK_THRESHOLD: Decimal = Decimal(
        os.getenv("CRITICAL_STOCK_THRESHOLD", "5")
    )

    # Movement log
    MAX_APPEND_RETRIES: int = int(os.getenv("MAX_APPEND_RETRIES", "3"))
    # "exact" stores product names as given, "normalized" trims them
    IDENTITY_POLICY: str = os.getenv("IDENTITY_POLICY", "exact").lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    The Settings object is created once and reused for all
    subsequent calls.
    """
    return Settings()
