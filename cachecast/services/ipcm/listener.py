"""
Listener - apply invalidation commands sent by sibling workers.

The wake-up signal never does the work itself:

- inside a running asyncio loop (the ASGI server case) the handler is
  registered with ``loop.add_signal_handler``; the signal only writes to the
  loop's self-pipe and ``drain()`` runs later as an ordinary loop callback;
- without a loop, ``signal.signal`` is used; the C-level handler only sets
  the interpreter's pending-signal flag and ``drain()`` runs on the main
  thread at the next bytecode boundary.

Either way the handler code path takes no locks of its own.
"""

import asyncio
import os
import signal
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from cachecast.core.logging import get_logger
from cachecast.services.ipcm.commands import InvalidationCommand, Operation
from cachecast.services.ipcm.config import ProcessConfig
from cachecast.services.ipcm.mailbox import Mailbox
from cachecast.services.ipcm.results import (
    DrainResult,
    DrainStatus,
    ListenerError,
    MalformedCommandError,
)

logger = get_logger(__name__)


class CacheOperations(Protocol):
    """Cache-clearing capabilities the host application exposes to the listener."""

    def clear_all_cache(self, *args: Any) -> None: ...

    def clear_cache_matching(self, *patterns: Any) -> None: ...

    def clear_all_compiled_templates(self, *args: Any) -> None: ...

    def clear_compiled_templates_matching(self, *patterns: Any) -> None: ...


# Operation -> host method name. The only methods a listener will ever call.
DISPATCH: Dict[Operation, str] = {
    Operation.CLEAR_ALL_CACHE: "clear_all_cache",
    Operation.CLEAR_CACHE_MATCHING: "clear_cache_matching",
    Operation.CLEAR_ALL_COMPILED_TEMPLATES: "clear_all_compiled_templates",
    Operation.CLEAR_COMPILED_TEMPLATES_MATCHING: "clear_compiled_templates_matching",
}


class Listener:
    """Receiving half of the inter-process cache manager."""

    def __init__(
        self,
        config: ProcessConfig,
        host: CacheOperations,
        mailbox: Optional[Mailbox] = None,
    ):
        self.config = config
        self.host = host
        self._mailbox = mailbox
        self._installed = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._previous_handler: Any = None

    @property
    def mailbox(self) -> Mailbox:
        if self._mailbox is None:
            self._mailbox = Mailbox(self.config.mailbox_directory())
        return self._mailbox

    @property
    def installed(self) -> bool:
        return self._installed

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """
        Start reacting to the configured signal, replacing any prior handler.

        Raises:
            ListenerError: If already installed, or if the handler cannot be
                registered (e.g. called off the main thread).
        """
        if self._installed:
            raise ListenerError("IPCM listener is already installed")

        signum = self.config.signal_kind()
        try:
            self._previous_handler = signal.getsignal(signum)
            if loop is not None:
                loop.add_signal_handler(signum, self._drain_in_loop)
                self._loop = loop
            else:
                signal.signal(signum, self._handle_signal)
        except (ValueError, RuntimeError, OSError) as e:
            raise ListenerError(f"Unable to install IPCM listener: {e}") from e

        self._installed = True
        logger.info(
            "IPCM listener installed on %s (pid %d, %s)",
            signum.name,
            os.getpid(),
            "event loop" if loop is not None else "signal handler",
        )

    def uninstall(self) -> None:
        """Stop reacting to the signal and restore the previous handler."""
        if not self._installed:
            return

        signum = self.config.signal_kind()
        if self._loop is not None:
            if not self._loop.is_closed():
                self._loop.remove_signal_handler(signum)
            self._loop = None

        previous = self._previous_handler
        signal.signal(signum, previous if previous is not None else signal.SIG_DFL)
        self._previous_handler = None
        self._installed = False
        logger.info("IPCM listener uninstalled from %s", signum.name)

    def _handle_signal(self, signum, frame) -> None:
        self.drain()

    def _drain_in_loop(self) -> None:
        self.drain()

    def drain(self) -> List[DrainResult]:
        """
        Consume every message addressed to this process.

        Messages are processed in directory listing order; no ordering across
        files is promised.
        """
        try:
            paths = self.mailbox.messages_for(os.getpid())
        except OSError as e:
            logger.warning("Unable to list IPCM mailbox: %s", e)
            return []

        results = [self._consume(path) for path in paths]
        if results:
            logger.debug("Drained %d IPCM message(s)", len(results))
        return results

    def _consume(self, path: Path) -> DrainResult:
        command: Optional[InvalidationCommand] = None
        error: Optional[str] = None
        try:
            command = InvalidationCommand.decode(self.mailbox.read(path))
        except (OSError, MalformedCommandError) as e:
            error = str(e)
            logger.warning(
                'Unable to process "%s" cache message, skipping cache cleaning: %s',
                path,
                e,
            )

        # Removed before dispatch: a crash from here on loses this command
        # rather than replaying it.
        try:
            self.mailbox.discard(path)
        except OSError as e:
            logger.warning("Unable to remove cache message %s: %s", path, e)

        if command is None:
            return DrainResult(path, DrainStatus.MALFORMED, error=error)

        operation = Operation.parse(command.operation)
        if operation is None:
            return DrainResult(
                path, DrainStatus.UNRECOGNIZED, operation=command.operation
            )

        try:
            getattr(self.host, DISPATCH[operation])(*command.arguments)
        except Exception as e:
            logger.warning(
                "Cache operation %s%r failed: %s",
                operation.value,
                command.arguments,
                e,
                exc_info=True,
            )
            return DrainResult(
                path, DrainStatus.FAILED, operation=operation.value, error=str(e)
            )

        return DrainResult(path, DrainStatus.APPLIED, operation=operation.value)
