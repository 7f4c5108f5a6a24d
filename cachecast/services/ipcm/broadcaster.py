"""
Broadcaster - fan an invalidation command out to sibling workers.

For every sibling pid a message file is staged in the mailbox and the
sibling is woken with the configured signal. Nothing here ever raises into
the caller: invalidation is an optimization, and a failure should only mean
a stale cache lives a little longer.
"""

import os
from collections.abc import Iterable, Mapping
from typing import Any, Callable, List, Optional, Union

from pydantic import ValidationError

from cachecast.core.logging import get_logger
from cachecast.services.ipcm.commands import InvalidationCommand, Operation
from cachecast.services.ipcm.config import ProcessConfig
from cachecast.services.ipcm.mailbox import Mailbox
from cachecast.services.ipcm.results import (
    BroadcastOutcome,
    BroadcastReport,
    DeliveryStatus,
    TargetResult,
)

logger = get_logger(__name__)


class Broadcaster:
    """
    Sending half of the inter-process cache manager.

    ``kill`` and ``own_pid`` default to ``os.kill`` and ``os.getpid()``;
    they are parameters so a worker can be exercised without real siblings.
    """

    def __init__(
        self,
        config: ProcessConfig,
        mailbox: Optional[Mailbox] = None,
        kill: Callable[[int, int], None] = os.kill,
        own_pid: Optional[int] = None,
    ):
        self.config = config
        self._mailbox = mailbox
        self._kill = kill
        self._own_pid = own_pid

    @property
    def mailbox(self) -> Mailbox:
        if self._mailbox is None:
            self._mailbox = Mailbox(self.config.mailbox_directory())
        return self._mailbox

    @property
    def own_pid(self) -> int:
        # Looked up on every call: workers are usually forked after import.
        return self._own_pid if self._own_pid is not None else os.getpid()

    def _targets(self, pids: Any) -> Optional[List[int]]:
        """Normalize the pid source result, or None if it is not a pid list."""
        if isinstance(pids, (str, bytes, Mapping)) or not isinstance(pids, Iterable):
            return None
        try:
            candidates = [int(p) for p in pids]
        except (TypeError, ValueError):
            return None

        own = self.own_pid
        return list(dict.fromkeys(p for p in candidates if p >= 2 and p != own))

    def trigger(
        self, operation: Union[Operation, str], *arguments: Any
    ) -> BroadcastReport:
        """
        Ask every sibling worker to run ``operation(*arguments)``.

        Whether the operation is recognized is decided by the receivers.
        """
        pid_source = self.config.pid_source()
        if pid_source is None:
            return BroadcastReport(BroadcastOutcome.DISABLED)

        try:
            pids = pid_source()
            # Lazy iterables can fail while being consumed
            if isinstance(pids, Iterable) and not isinstance(
                pids, (str, bytes, Mapping)
            ):
                pids = list(pids)
        except Exception as e:
            logger.warning("pid source failed, skipping cache broadcast: %s", e)
            return BroadcastReport(BroadcastOutcome.PID_SOURCE_FAILED, error=str(e))

        targets = self._targets(pids)
        if targets is None:
            logger.warning(
                "pid source should return a sequence of pids, got %s. "
                "Skipping cache broadcast.",
                type(pids).__name__,
            )
            return BroadcastReport(
                BroadcastOutcome.MALFORMED_PIDS, error=type(pids).__name__
            )

        try:
            command = InvalidationCommand.of(operation, *arguments)
            command.encode()
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning("Unable to encode cache invalidation %r: %s", operation, e)
            return BroadcastReport(BroadcastOutcome.ENCODE_FAILED, error=str(e))

        signum = self.config.signal_kind()
        results: List[TargetResult] = []

        for pid in targets:
            path = None
            try:
                mailbox = self.mailbox
                path = mailbox.write(pid, command)
                self._kill(pid, signum)
            except (OSError, OverflowError, ValueError) as e:
                logger.warning(
                    "Unable to deliver cache invalidation to pid %d: %s", pid, e
                )
                if path is not None:
                    try:
                        mailbox.discard(path)
                    except OSError as cleanup_error:
                        logger.warning(
                            "Unable to remove undelivered message %s: %s",
                            path,
                            cleanup_error,
                        )
                results.append(
                    TargetResult(pid, DeliveryStatus.FAILED, path=path, error=str(e))
                )
                continue

            results.append(TargetResult(pid, DeliveryStatus.DELIVERED, path=path))

        logger.debug(
            "Broadcast %s to %d sibling(s), %d failed",
            command.operation,
            len(results),
            sum(1 for r in results if r.status is DeliveryStatus.FAILED),
        )
        return BroadcastReport(BroadcastOutcome.COMPLETED, targets=results)
