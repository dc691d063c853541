"""
API Routes

FastAPI routers for PhotoRate endpoints.
"""

from photorate.routes.auth import router as auth_router
from photorate.routes.health import router as health_router
from photorate.routes.photos import router as photos_router
from photorate.routes.stats import router as stats_router

__all__ = ["auth_router", "health_router", "photos_router", "stats_router"]
