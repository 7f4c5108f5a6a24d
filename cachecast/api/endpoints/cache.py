import os
from typing import Annotated, Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from cachecast.core.logging import get_logger
from cachecast.dependencies.ipcm import get_cache_host, get_manager
from cachecast.services.cache import CacheHost
from cachecast.services.ipcm import InterProcessCacheManager, Operation

router = APIRouter()
logger = get_logger(__name__)

CacheHostDep = Annotated[CacheHost, Depends(get_cache_host)]
ManagerDep = Annotated[InterProcessCacheManager, Depends(get_manager)]


class InvalidationRequest(BaseModel):
    operation: str = Field(description="One of the recognized cache operations.")
    arguments: List[Any] = Field(
        default_factory=list, description="Keys or patterns; empty means everything."
    )


class TargetStatus(BaseModel):
    pid: int
    status: str
    error: Optional[str] = None


class InvalidationResponse(BaseModel):
    operation: str
    outcome: str
    targets: List[TargetStatus]


@router.post("/invalidate", response_model=InvalidationResponse)
def invalidate(body: InvalidationRequest, host: CacheHostDep):
    """
    Apply a cache operation on this worker and broadcast it to its siblings.
    """
    operation = Operation.parse(body.operation)
    if operation is None:
        raise HTTPException(
            status_code=422, detail=f"Unknown cache operation: {body.operation}"
        )

    report = host.propagate(operation, *body.arguments)
    logger.info(
        "Invalidation %s%r: %s (%d target(s))",
        operation.value,
        tuple(body.arguments),
        report.outcome.value,
        len(report.targets),
    )
    return InvalidationResponse(
        operation=operation.value,
        outcome=report.outcome.value,
        targets=[
            TargetStatus(pid=t.pid, status=t.status.value, error=t.error)
            for t in report.targets
        ],
    )


@router.get("/stats")
def cache_stats(host: CacheHostDep):
    """Sizes of this worker's caches."""
    return {
        "pid": os.getpid(),
        "values": len(host.values),
        "templates": len(host.templates),
    }


@router.get("/ipcm")
def ipcm_status(manager: ManagerDep):
    """Inter-process cache manager settings of this worker."""
    return {
        "pid": os.getpid(),
        "enabled": manager.config.enabled,
        "listening": manager.listener.installed,
        "mailbox_directory": str(manager.mailbox_directory()),
        "signal": manager.signal_kind().name,
    }
