"""API routers package."""

from .health import router as health_router
from .limits import router as limits_router
from .maintenance import router as maintenance_router

__all__ = [
    "health_router",
    "limits_router",
    "maintenance_router",
]
