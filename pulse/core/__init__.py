"""
Core infrastructure package for the Traffic Pulse backend.

Provides:
- Configuration management via pydantic-settings
- Construction of the Analytics Data API gateway and Anthropic client
- FastAPI dependency injection utilities

Re-exports key components so other modules can write:

    from pulse.core import get_settings, GatewayDep

instead of importing from the individual submodules.
"""

from pulse.core.config import Settings, get_settings

from pulse.core.client import (
    AnalyticsConfigurationError,
    create_analytics_gateway,
    close_analytics_gateway,
    create_assistant_client,
)

from pulse.core.dependencies import (
    get_gateway,
    get_assistant_client,
    get_settings_dependency,
    GatewayDep,
    AssistantClientDep,
    SettingsDep,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Client lifecycle (from client.py)
    'AnalyticsConfigurationError',
    'create_analytics_gateway',
    'close_analytics_gateway',
    'create_assistant_client',
    # FastAPI dependency injection (from dependencies.py)
    'get_gateway',
    'get_assistant_client',
    'get_settings_dependency',
    'GatewayDep',
    'AssistantClientDep',
    'SettingsDep',
]
