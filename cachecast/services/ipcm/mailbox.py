"""
Mailbox directory used to hand invalidation commands to sibling workers.

Every message is its own file named ``<pid>.<digest>-<time_ns>``, so listing
the messages addressed to a process is a single glob and concurrent writers
never touch the same file.
"""

import os
import time
from pathlib import Path
from typing import List, Union

from cachecast.core.logging import get_logger
from cachecast.services.ipcm.commands import InvalidationCommand

logger = get_logger(__name__)

_TMP_PREFIX = ".tmp-"


class Mailbox:
    """Write-once / read-once message files, one per (target pid, command)."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return f"Mailbox({str(self.directory)!r})"

    def _message_path(self, pid: int, command: InvalidationCommand) -> Path:
        stem = f"{pid}.{command.digest()}-{time.time_ns()}"
        path = self.directory / stem
        n = 0
        while path.exists():
            n += 1
            path = self.directory / f"{stem}-{n}"
        return path

    def write(self, pid: int, command: InvalidationCommand) -> Path:
        """
        Stage a message for ``pid``.

        The payload goes to a hidden temporary file first and is renamed into
        place, so a listener draining concurrently only ever sees whole files.

        Raises:
            OSError: If the file cannot be written.
            TypeError: If the command cannot be encoded.
        """
        payload = command.encode()
        path = self._message_path(pid, command)
        tmp = self.directory / f"{_TMP_PREFIX}{path.name}"
        try:
            tmp.write_bytes(payload)
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Staged %s for pid %d", path.name, pid)
        return path

    def messages_for(self, pid: int) -> List[Path]:
        """All message files addressed to ``pid``, in directory listing order."""
        return list(self.directory.glob(f"{pid}.*"))

    def read(self, path: Path) -> bytes:
        return path.read_bytes()

    def discard(self, path: Path) -> bool:
        """Delete a message file. A file that is already gone is not an error."""
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False
