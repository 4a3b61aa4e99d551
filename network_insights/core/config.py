"""
Settings and environment management module for the Network Insights backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Optional credentials for Google Sheets and OpenAI
- Cache lifetimes for the spreadsheet snapshot and derived analytics

Environment Variables:
- GOOGLE_APPLICATION_CREDENTIALS: Path to the service account JSON with read access
  to the licensee spreadsheet
- GOOGLE_SHEETS_SPREADSHEET_ID: Spreadsheet holding the licensee base
- GOOGLE_SHEETS_RANGE: A1 range to read (default: A1:AQ)
- OPENAI_API_KEY: OpenAI API key for the analytics assistant (optional)
- OPENAI_MODEL: Chat model name (default: gpt-4o)

Cache Defaults:
- records_cache_ttl_seconds: 300 (spreadsheet snapshot, 5 minutes)
- analytics_cache_ttl_seconds: 600 (heavy analytics such as performance score)
- metrics_cache_ttl_seconds: 60 (assistant headline metrics)

Usage:
    from network_insights.core.config import get_settings

    settings = get_settings()
    spreadsheet_id = settings.google_sheets_spreadsheet_id
    ttl = settings.records_cache_ttl_seconds
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The class inherits from pydantic-settings BaseSettings which provides:
    - Automatic loading from environment variables (case-insensitive)
    - Support for .env file loading
    - Type validation and coercion
    - Default values for optional settings

    Attributes:
        google_application_credentials: Path to GCP service account JSON for Sheets.
        google_sheets_spreadsheet_id: Spreadsheet ID of the licensee base.
        google_sheets_range: A1 range read from the first sheet.
        sheets_timeout_seconds: HTTP timeout for spreadsheet reads.
        openai_api_key: OpenAI API key for the assistant. Assistant falls back
            to canned, number-free answers when unset.
        openai_model: Chat completion model.
        openai_max_tokens: Completion token cap.
        openai_temperature: Sampling temperature.
        records_cache_ttl_seconds: Lifetime of the normalized record snapshot.
        analytics_cache_ttl_seconds: Lifetime of derived analytics payloads.
        metrics_cache_ttl_seconds: Lifetime of the assistant headline metrics.
        cors_origins: Allowed browser origins for the dashboard frontend.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Google Sheets (system of record)
    # =========================================================================

    # Service account JSON path; the account needs spreadsheets.readonly
    google_application_credentials: Optional[str] = None

    google_sheets_spreadsheet_id: Optional[str] = None

    # First row of the range is the header row
    google_sheets_range: str = 'A1:AQ'

    sheets_timeout_seconds: int = 30

    # =========================================================================
    # OpenAI (analytics assistant)
    # =========================================================================

    openai_api_key: Optional[str] = None
    openai_model: str = 'gpt-4o'
    openai_max_tokens: int = 500
    openai_temperature: float = 0.3

    # =========================================================================
    # Cache lifetimes
    # Spreadsheet edits happen on a minutes scale, so serving a snapshot
    # a few minutes old is acceptable.
    # =========================================================================

    records_cache_ttl_seconds: int = 300
    analytics_cache_ttl_seconds: int = 600
    metrics_cache_ttl_seconds: int = 60

    # =========================================================================
    # HTTP
    # =========================================================================

    cors_origins: List[str] = [
        'http://localhost:5000',
        'http://localhost:5173',
        'http://127.0.0.1:5173',
    ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns a cached Settings instance, ensuring that environment variables
    are only loaded once during the application lifecycle.

    Returns:
        Settings: The application settings instance with all configuration values.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
