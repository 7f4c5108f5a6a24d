from fastapi import APIRouter
from cachecast.api.endpoints import cache_router, health_router

router = APIRouter()

router.include_router(health_router, prefix="/health", tags=["health"])
router.include_router(cache_router, prefix="/cache", tags=["cache"])
