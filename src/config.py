"""
Configuration management using Pydantic Settings.
Loads from environment variables or .env file.
"""
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Scoring-run and API configuration loaded from environment variables.

    Usage:
        # .env file
        SIGMA_K=2.5
        NOCTURNAL_HOURS=[0,1,2,3,4,5]
        RESULTS_DB_PATH=data/processed/fraud_results.duckdb

        # In code
        from src.config import settings
        print(settings.SIGMA_K)
    """
    # Data
    SOURCE_DB_PATH: str = "data/processed/cleaned_merged_data.duckdb"
    SOURCE_TABLE: str = "cleaned_merged_data"
    RESULTS_DB_PATH: str = "data/processed/fraud_results.duckdb"

    # Detector thresholds
    SIGMA_K: float = 3.0
    NOCTURNAL_HOURS: List[int] = [0, 1, 2, 3, 4]
    FREQUENT_COUNTERPARTY_CUTOFF: int = 5
    MIN_FRAUD_FLAGS: int = 1

    # Suspicion buckets (strict ">")
    HIGH_SUSPICION_MIN_COUNT: int = 10
    HIGH_SUSPICION_MIN_AMOUNT: float = 100000.0
    MODERATE_SUSPICION_MIN_COUNT: int = 5
    MODERATE_SUSPICION_MIN_AMOUNT: float = 50000.0

    # Execution
    MAX_WORKERS: int = 4
    RUN_GX_VALIDATION: bool = False
    GX_CONTEXT_DIR: str = "great_expectations"

    # API settings
    API_TITLE: str = "Marketplace Fraud Scoring API"
    API_VERSION: str = "1.0.0"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra env vars like PYTHONPATH
    )


# Global settings instance
settings = Settings()
