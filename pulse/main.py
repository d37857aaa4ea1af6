"""
FastAPI application entry point for the Traffic Pulse API.

This module wires the service together: it builds the Analytics Data API
gateway and the Anthropic client at startup, configures CORS, registers the
API routers, and starts the ASGI server.

Client lifecycle:
- Both clients are created once in the lifespan and stored on app.state
- Request handlers receive them through pulse/core/dependencies.py
- A client that fails to initialize is left as None; its endpoints answer
  503 while the rest of the API keeps working
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pulse import __version__
from pulse.api import api_router
from pulse.core.client import close_analytics_gateway, create_analytics_gateway, create_assistant_client
from pulse.core.config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Build the analytics gateway for the configured GA4 property
        - Build the Anthropic client for the assistant

    On shutdown:
        - Close the gateway's gRPC channel
    """
    settings = get_settings()

    # Startup
    logger.info("Traffic Pulse API starting")
    app.state.gateway = None
    app.state.assistant_client = None

    try:
        app.state.gateway = create_analytics_gateway(settings)
        logger.info("Analytics gateway initialized")
    except Exception as e:
        logger.error(f"Failed to initialize analytics gateway: {e}")
        # Continue startup; analytics endpoints answer 503 until configured

    try:
        app.state.assistant_client = create_assistant_client(settings)
        logger.info("Assistant client initialized")
    except Exception as e:
        logger.error(f"Failed to initialize assistant client: {e}")

    yield

    # Shutdown
    logger.info("Traffic Pulse API shutting down")
    if app.state.gateway is not None:
        try:
            await close_analytics_gateway(app.state.gateway)
            logger.info("Analytics gateway closed")
        except Exception as e:
            logger.error(f"Error closing analytics gateway: {e}")


# Create FastAPI application
app = FastAPI(
    title="Traffic Pulse API",
    version=__version__,
    description=(
        "FastAPI backend for the Traffic Pulse analytics dashboard. "
        "Provides dashboard metrics, the weekly channel report, and the "
        "analytics assistant over Google Analytics 4 data."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers (each has its own /analytics prefix)
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy' and which clients are available
    """
    return {
        "status": "healthy",
        "analytics": getattr(app.state, "gateway", None) is not None,
        "assistant": getattr(app.state, "assistant_client", None) is not None,
    }


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Traffic Pulse API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pulse.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
