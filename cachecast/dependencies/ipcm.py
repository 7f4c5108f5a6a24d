"""
cachecast Cache Dependencies
"""

from fastapi import HTTPException, Request

from cachecast.services.cache import CacheHost
from cachecast.services.ipcm import InterProcessCacheManager


def get_cache_host(request: Request) -> CacheHost:
    """Get this worker's cache host (set up in lifespan)."""
    host = getattr(request.app.state, "cache_host", None)
    if host is None:
        raise HTTPException(status_code=503, detail="Cache host not initialized")
    return host


def get_manager(request: Request) -> InterProcessCacheManager:
    """Get this worker's inter-process cache manager (set up in lifespan)."""
    manager = getattr(request.app.state, "ipcm", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="IPCM not initialized")
    return manager
