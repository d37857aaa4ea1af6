"""
Settings and environment management module for the Traffic Pulse backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Support for both file-based and inline Google service account credentials

Environment Variables:
- GA_PROPERTY_ID: GA4 property, either "123456789" or "properties/123456789"
- GOOGLE_APPLICATION_CREDENTIALS_JSON: Service account JSON as a string (hosted deployments)
- GOOGLE_APPLICATION_CREDENTIALS: Path to service account JSON (local development)
- ANTHROPIC_API_KEY: API key for the analytics assistant
- SLACK_WEBHOOK_URL: Incoming webhook for the weekly digest

Usage:
    from pulse.core.config import get_settings

    settings = get_settings()
    property_name = settings.ga_property_name
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        ga_property_id: GA4 property id. Empty means the analytics gateway
            cannot issue reports.
        google_application_credentials_json: Inline service account JSON. Takes
            precedence over the credentials file.
        google_application_credentials: Path to the service account JSON file,
            picked up by Google application default credentials.
        anthropic_api_key: API key for the assistant. When unset the Anthropic
            client falls back to its own ANTHROPIC_API_KEY lookup.
        assistant_model: Model used for chat and report generation.
        assistant_max_tokens: max_tokens for each assistant request.
        assistant_max_tool_rounds: Upper bound on tool-use round trips per chat turn.
        slack_webhook_url: Slack incoming webhook URL for the weekly digest.
        anomaly_threshold: Default z-score threshold for anomaly detection.
        cors_origins: Browser origins allowed to call the API.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Google Analytics
    # =========================================================================

    ga_property_id: str = ''

    google_application_credentials_json: Optional[str] = None

    google_application_credentials: Optional[str] = None

    # =========================================================================
    # Analytics Assistant
    # =========================================================================

    anthropic_api_key: Optional[str] = None

    assistant_model: str = 'claude-sonnet-4-20250514'

    assistant_max_tokens: int = 4096

    # Each round is one model call that ended in tool_use
    assistant_max_tool_rounds: int = 10

    # =========================================================================
    # Slack Integration (Optional - for weekly digests)
    # =========================================================================

    # Format: https://hooks.slack.com/services/xxx/yyy/zzz
    slack_webhook_url: Optional[str] = None

    # =========================================================================
    # Reporting Defaults
    # =========================================================================

    # |z| strictly above this value flags a day as anomalous
    anomaly_threshold: float = 2.0

    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

    @property
    def ga_property_name(self) -> str:
        """
        Resource name expected by the Analytics Data API.

        Returns:
            "properties/<id>", or '' when no property is configured.
        """
        property_id = self.ga_property_id.strip()
        if not property_id:
            return ''
        if property_id.startswith('properties/'):
            return property_id
        return f'properties/{property_id}'


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
