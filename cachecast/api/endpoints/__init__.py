from .cache import router as cache_router
from .health import router as health_router

__all__ = ["cache_router", "health_router"]
