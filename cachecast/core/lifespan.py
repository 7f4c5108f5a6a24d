import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from cachecast.core.config import settings
from cachecast.core.logging import get_logger, setup_logging
from cachecast.services.cache import CacheHost, CachePool, TemplatePool
from cachecast.services.ipcm import build_manager
from cachecast.services.ipcm.pid_sources import PidRegistry, sibling_pids

logger = get_logger(__name__)


def _resolve(path: str) -> Path:
    p = Path(path)
    return p if p.is_absolute() else Path(settings.APP_ROOT) / p


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan function for the FastAPI application.
    Runs once per worker process: wires the caches to the inter-process
    cache manager and switches invalidation broadcasting on.
    """
    setup_logging(settings.LOG_LEVEL, settings.IPCM_LOG_LEVEL)

    # 1. Build per-worker caches
    host = CacheHost(CachePool(), TemplatePool(str(_resolve(settings.TEMPLATES_DIR))))

    # 2. Build the inter-process cache manager
    manager = build_manager(settings, host)
    manager.attach_loop(asyncio.get_running_loop())
    host.attach(manager)

    # 3. Supply the pid source (installs the listener)
    registry = None
    if settings.IPCM_PID_SOURCE == "registry":
        registry = PidRegistry(_resolve(settings.IPCM_PID_REGISTRY_DIR))
        manager.pid_source(registry)
        # Only visible to siblings once the listener is in place
        registry.register()
    elif settings.IPCM_PID_SOURCE == "siblings":
        manager.pid_source(sibling_pids)
    else:
        logger.info("IPCM disabled; cache invalidation stays local to pid %d", os.getpid())

    app.state.cache_host = host
    app.state.ipcm = manager

    yield

    # 4. Leave the registry, then stop listening
    if registry is not None:
        registry.unregister()
    manager.shutdown()
