"""
Ready-made pid sources.

A pid source is any zero-argument callable returning the pids of the
sibling workers. Which one fits depends on how the server forks:

- ``sibling_pids``: all workers are children of one master process
  (``uvicorn --workers N``, gunicorn);
- ``PidRegistry``: workers register themselves in a shared directory;
- ``static_pids``: a fixed list.
"""

import os
from pathlib import Path
from typing import Callable, List, Optional, Union

import psutil

from cachecast.core.logging import get_logger

logger = get_logger(__name__)


def sibling_pids() -> List[int]:
    """
    Pids of the children of this process's parent that run the same command
    line as this process (this process included).

    Other children of the parent, such as unrelated jobs of a shell, are left
    out: the wake-up signal would otherwise reach processes that do not
    handle it.
    """
    me = psutil.Process(os.getpid())
    parent = me.parent()
    if parent is None:
        return []

    cmdline = me.cmdline()
    pids = []
    for child in parent.children(recursive=False):
        try:
            if child.cmdline() == cmdline:
                pids.append(child.pid)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    return pids


def static_pids(*pids: int) -> Callable[[], List[int]]:
    frozen = list(pids)

    def source() -> List[int]:
        return list(frozen)

    return source


class PidRegistry:
    """
    Directory of ``<pid>.pid`` marker files, one per live worker.

    Calling the registry returns the registered pids whose process still
    exists; markers left behind by dead workers are removed along the way.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _marker(self, pid: int) -> Path:
        return self.directory / f"{pid}.pid"

    def register(self, pid: Optional[int] = None) -> Path:
        marker = self._marker(pid if pid is not None else os.getpid())
        marker.touch()
        logger.debug("Registered worker %s", marker.stem)
        return marker

    def unregister(self, pid: Optional[int] = None) -> None:
        self._marker(pid if pid is not None else os.getpid()).unlink(missing_ok=True)

    def __call__(self) -> List[int]:
        pids = []
        for marker in self.directory.glob("*.pid"):
            try:
                pid = int(marker.stem)
            except ValueError:
                continue
            if psutil.pid_exists(pid):
                pids.append(pid)
            else:
                logger.debug("Removing stale worker marker %s", marker.name)
                marker.unlink(missing_ok=True)
        return sorted(pids)
