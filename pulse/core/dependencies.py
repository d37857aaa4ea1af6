"""
FastAPI dependency injection module for the Traffic Pulse backend.

Provides reusable dependencies for the analytics gateway, the assistant
client and configuration access. The gateway and assistant client are created
once by the application lifespan and stored on app.state; these dependencies
read them from the incoming request so handlers receive them as explicit
arguments.

Key Dependencies Provided:
- get_gateway: Returns the AnalyticsGateway created at startup
- get_assistant_client: Returns the AsyncAnthropic client created at startup
- get_settings_dependency: Returns the cached Settings singleton
- GatewayDep / AssistantClientDep / SettingsDep: Annotated aliases

Usage Examples:
    @router.get("/analytics")
    async def get_analytics(gateway: GatewayDep, settings: SettingsDep):
        return await get_aggregated_metrics(gateway, date_range)

Testing:
    app.dependency_overrides[get_gateway] = lambda: fake_gateway
"""

from typing import Annotated

from anthropic import AsyncAnthropic
from fastapi import Depends, HTTPException, Request

from pulse.core.config import Settings, get_settings
from pulse.services.gateway import AnalyticsGateway


# =============================================================================
# Analytics Gateway Dependency
# =============================================================================

def get_gateway(request: Request) -> AnalyticsGateway:
    """
    Return the analytics gateway owned by the application.

    Raises:
        HTTPException 503: If the gateway failed to initialize at startup
            (missing property id or credentials).
    """
    gateway = getattr(request.app.state, 'gateway', None)
    if gateway is None:
        raise HTTPException(
            status_code=503,
            detail="Analytics gateway unavailable. Check GA_PROPERTY_ID and Google credentials.",
        )
    return gateway


# =============================================================================
# Assistant Client Dependency
# =============================================================================

def get_assistant_client(request: Request) -> AsyncAnthropic:
    """
    Return the Anthropic client owned by the application.

    Raises:
        HTTPException 503: If the client failed to initialize at startup.
    """
    client = getattr(request.app.state, 'assistant_client', None)
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Analytics assistant unavailable. Check ANTHROPIC_API_KEY.",
        )
    return client


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

GatewayDep = Annotated[AnalyticsGateway, Depends(get_gateway)]

AssistantClientDep = Annotated[AsyncAnthropic, Depends(get_assistant_client)]

SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]
