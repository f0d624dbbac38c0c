"""
API routers module.

This module contains all API route definitions organized by domain.
"""
from api.routers.health import router as health_router
from api.routers.heatmap import router as heatmap_router
from api.routers.growth import router as growth_router
from api.routers.meta import router as meta_router

__all__ = ["health_router", "heatmap_router", "growth_router", "meta_router"]
