"""
Outcome types for the inter-process cache manager.

Broadcasting and draining never raise into the caller; instead every step
reports what happened through the values defined here, so callers (and tests)
can tell a dead sibling from a broken pid source without catching anything.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class IPCMError(Exception):
    """Base class for inter-process cache manager errors."""


class ConfigurationError(IPCMError):
    """Raised at startup when a setting cannot be applied (e.g. unknown signal)."""


class ListenerError(IPCMError):
    """Raised when the listener is installed twice or misused."""


class MalformedCommandError(IPCMError):
    """Raised when a mailbox payload does not decode to an invalidation command."""


class BroadcastOutcome(str, Enum):
    DISABLED = "disabled"
    PID_SOURCE_FAILED = "pid_source_failed"
    MALFORMED_PIDS = "malformed_pids"
    ENCODE_FAILED = "encode_failed"
    COMPLETED = "completed"


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    FAILED = "failed"


class DrainStatus(str, Enum):
    APPLIED = "applied"
    MALFORMED = "malformed"
    UNRECOGNIZED = "unrecognized"
    FAILED = "failed"  # host operation raised


@dataclass
class TargetResult:
    """Result of writing and signaling one sibling."""

    pid: int
    status: DeliveryStatus
    path: Optional[Path] = None
    error: Optional[str] = None


@dataclass
class BroadcastReport:
    """Result of one trigger call."""

    outcome: BroadcastOutcome
    targets: List[TargetResult] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def delivered(self) -> List[int]:
        return [t.pid for t in self.targets if t.status is DeliveryStatus.DELIVERED]

    @property
    def failed(self) -> List[int]:
        return [t.pid for t in self.targets if t.status is DeliveryStatus.FAILED]


@dataclass
class DrainResult:
    """Result of consuming one mailbox message."""

    path: Path
    status: DrainStatus
    operation: Optional[str] = None
    error: Optional[str] = None
