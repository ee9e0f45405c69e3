"""
API Routes Module
"""
from .health import router as health_router
from .insights import router as insights_router
from .recommendations import router as recommendations_router

__all__ = [
    "health_router",
    "insights_router",
    "recommendations_router",
]
