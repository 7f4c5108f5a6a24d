"""
Inter-process cache manager.

Ties one ProcessConfig, Broadcaster and Listener together for a worker
process. Supplying the pid source for the first time is what switches the
mechanism on: it installs the listener, exactly once.
"""

import asyncio
import signal
from pathlib import Path
from typing import Any, Optional, Union

from cachecast.core.config import Settings
from cachecast.core.logging import get_logger
from cachecast.services.ipcm.broadcaster import Broadcaster
from cachecast.services.ipcm.commands import Operation
from cachecast.services.ipcm.config import PidSource, ProcessConfig, check_pid_source
from cachecast.services.ipcm.listener import CacheOperations, Listener
from cachecast.services.ipcm.results import BroadcastReport

logger = get_logger(__name__)


class InterProcessCacheManager:
    def __init__(
        self,
        config: ProcessConfig,
        host: CacheOperations,
        broadcaster: Optional[Broadcaster] = None,
        listener: Optional[Listener] = None,
    ):
        self.config = config
        self.host = host
        self.broadcaster = broadcaster or Broadcaster(config)
        self.listener = listener or Listener(config, host)
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def attach_loop(self, loop: asyncio.AbstractEventLoop) -> None:
        """Have the listener drain on ``loop`` instead of in the signal handler."""
        self._loop = loop

    def mailbox_directory(self, path: Optional[Union[str, Path]] = None) -> Path:
        return self.config.mailbox_directory(path)

    def signal_kind(
        self, name: Optional[Union[str, int, signal.Signals]] = None
    ) -> signal.Signals:
        return self.config.signal_kind(name)

    def pid_source(self, capability: Optional[PidSource] = None) -> Optional[PidSource]:
        """
        Set (once) and return the pid source.

        The first call that actually sets it installs the listener. The pid
        source is only stored once the listener is in place, so a failed
        install leaves the manager disabled and the call can be retried.
        """
        if capability is not None and self.config.pid_source() is None:
            check_pid_source(capability)
            self.listener.install(self._loop)
            self.config.pid_source(capability)
        return self.config.pid_source()

    def trigger(self, operation: Union[Operation, str], *arguments: Any) -> BroadcastReport:
        """Broadcast ``operation(*arguments)`` to every sibling worker."""
        return self.broadcaster.trigger(operation, *arguments)

    def shutdown(self) -> None:
        self.listener.uninstall()


def build_manager(settings: Settings, host: CacheOperations) -> InterProcessCacheManager:
    """Build a manager from application settings. The pid source is left unset."""
    config = ProcessConfig(
        root=settings.APP_ROOT,
        mailbox_dir=settings.IPCM_MAILBOX_DIR,
        signal_name=settings.IPCM_SIGNAL,
    )
    logger.debug(
        "IPCM configured: mailbox=%s signal=%s",
        config.mailbox_directory(),
        config.signal_kind().name,
    )
    return InterProcessCacheManager(config, host)
