from .broadcaster import Broadcaster
from .commands import InvalidationCommand, Operation
from .config import PidSource, ProcessConfig
from .listener import CacheOperations, Listener
from .mailbox import Mailbox
from .manager import InterProcessCacheManager, build_manager
from .results import (
    BroadcastOutcome,
    BroadcastReport,
    ConfigurationError,
    DeliveryStatus,
    DrainResult,
    DrainStatus,
    IPCMError,
    ListenerError,
    MalformedCommandError,
    TargetResult,
)

__all__ = [
    "Broadcaster",
    "InvalidationCommand",
    "Operation",
    "PidSource",
    "ProcessConfig",
    "CacheOperations",
    "Listener",
    "Mailbox",
    "InterProcessCacheManager",
    "build_manager",
    "BroadcastOutcome",
    "BroadcastReport",
    "ConfigurationError",
    "DeliveryStatus",
    "DrainResult",
    "DrainStatus",
    "IPCMError",
    "ListenerError",
    "MalformedCommandError",
    "TargetResult",
]
