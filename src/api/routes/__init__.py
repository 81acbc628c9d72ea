"""API route modules."""

from .health import router as health_router
from .settle import router as settle_router

__all__ = ["health_router", "settle_router"]
