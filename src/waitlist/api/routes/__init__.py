"""API routers."""

from .applications import router as applications_router
from .daycares import router as daycares_router
from .health import router as health_router

__all__ = ["applications_router", "daycares_router", "health_router"]
