"""
API package initialization.

FastAPI router modules for the Traffic Pulse dashboard:
- analytics: GET /analytics?action=... dashboard views
- weekly: GET /analytics/weekly weekly report
- chat: POST /analytics/chat analytics assistant
"""

from fastapi import APIRouter

# Import router modules
from pulse.api.analytics import router as analytics_router
from pulse.api.weekly import router as weekly_router
from pulse.api.chat import router as chat_router

# Create main API router
api_router = APIRouter()

# Each router carries its own /analytics prefix
api_router.include_router(analytics_router)
api_router.include_router(weekly_router)
api_router.include_router(chat_router)

# Export all routers for selective imports
__all__ = [
    "api_router",
    "analytics_router",
    "weekly_router",
    "chat_router",
]
