"""
External client construction for the Traffic Pulse backend.

Builds the two long-lived API clients the service talks to:
- BetaAnalyticsDataAsyncClient (google-analytics-data) wrapped in an
  AnalyticsGateway bound to the configured GA4 property
- AsyncAnthropic for the analytics assistant

Both are created once by the FastAPI lifespan in pulse/main.py, kept on
app.state, and handed to request handlers through pulse/core/dependencies.py.
Nothing in this module holds a client at import time; every caller receives
the instance it should use.

Credentials:
    GOOGLE_APPLICATION_CREDENTIALS_JSON (inline JSON) wins over
    GOOGLE_APPLICATION_CREDENTIALS (file path, read by Google application
    default credentials).

Usage:
    settings = get_settings()
    gateway = create_analytics_gateway(settings)
    rows = await gateway.run_report(date_range, DAILY_METRICS_REPORT)
    await close_analytics_gateway(gateway)
"""

import json
import logging
from typing import Optional

from anthropic import AsyncAnthropic
from google.analytics.data_v1beta import BetaAnalyticsDataAsyncClient
from google.oauth2 import service_account

from pulse.core.config import Settings
from pulse.services.gateway import AnalyticsGateway

logger = logging.getLogger(__name__)

ANALYTICS_READONLY_SCOPE = 'https://www.googleapis.com/auth/analytics.readonly'


class AnalyticsConfigurationError(RuntimeError):
    """Raised when the analytics gateway cannot be built from the current settings."""


# =============================================================================
# Google Analytics
# =============================================================================

def _load_service_account_credentials(
    settings: Settings,
) -> Optional[service_account.Credentials]:
    """
    Parse inline service account JSON, if configured.

    Returns:
        Credentials, or None to fall back to application default credentials.

    Raises:
        AnalyticsConfigurationError: If the inline JSON cannot be parsed.
    """
    if not settings.google_application_credentials_json:
        return None

    try:
        info = json.loads(settings.google_application_credentials_json)
    except json.JSONDecodeError as e:
        raise AnalyticsConfigurationError(
            f'GOOGLE_APPLICATION_CREDENTIALS_JSON is not valid JSON: {e}'
        ) from e

    return service_account.Credentials.from_service_account_info(
        info,
        scopes=[ANALYTICS_READONLY_SCOPE],
    )


def create_analytics_gateway(settings: Settings) -> AnalyticsGateway:
    """
    Build the analytics gateway for the configured GA4 property.

    Must be called from inside a running event loop because the async gRPC
    transport binds to it.

    Raises:
        AnalyticsConfigurationError: If GA_PROPERTY_ID is not set or the
            inline credentials are malformed.
        google.auth.exceptions.DefaultCredentialsError: If no credentials can
            be found at all.
    """
    if not settings.ga_property_name:
        raise AnalyticsConfigurationError('GA_PROPERTY_ID not configured')

    credentials = _load_service_account_credentials(settings)
    if credentials is not None:
        client = BetaAnalyticsDataAsyncClient(credentials=credentials)
    else:
        client = BetaAnalyticsDataAsyncClient()

    logger.info(f"Analytics gateway bound to {settings.ga_property_name}")
    return AnalyticsGateway(client=client, property_name=settings.ga_property_name)


async def close_analytics_gateway(gateway: AnalyticsGateway) -> None:
    """Close the gateway's gRPC channel."""
    await gateway.client.transport.close()


# =============================================================================
# Anthropic
# =============================================================================

def create_assistant_client(settings: Settings) -> AsyncAnthropic:
    """
    Build the Anthropic client used by the analytics assistant.

    When ANTHROPIC_API_KEY is not in the settings the SDK reads it from the
    environment itself.
    """
    if settings.anthropic_api_key:
        return AsyncAnthropic(api_key=settings.anthropic_api_key)
    return AsyncAnthropic()
