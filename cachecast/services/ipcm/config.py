"""
Per-process settings for inter-process cache invalidation.

All three settings are write-once: the first call that supplies a value (or
the first read, which falls back to the default) fixes it for the lifetime of
the process, and later calls just return what was fixed.
"""

import os
import signal
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from cachecast.services.ipcm.results import ConfigurationError

# Returns the pids of the sibling workers; may raise or return garbage.
PidSource = Callable[[], Iterable[int]]

DEFAULT_MAILBOX_DIR = "tmp/ipcm"
DEFAULT_SIGNAL = signal.SIGALRM


def resolve_signal(value: Union[str, int, signal.Signals]) -> signal.Signals:
    """
    Turn "ALRM", "sigusr2", 14 or signal.SIGALRM into a signal.Signals member.

    Raises:
        ConfigurationError: If the value names no signal on this platform.
    """
    if isinstance(value, signal.Signals):
        return value
    if isinstance(value, int):
        try:
            return signal.Signals(value)
        except ValueError as e:
            raise ConfigurationError(f"Unknown signal number: {value}") from e

    name = str(value).strip().upper()
    if not name.startswith("SIG"):
        name = "SIG" + name
    try:
        return signal.Signals[name]
    except KeyError as e:
        raise ConfigurationError(f"Unknown signal: {value!r}") from e


def check_pid_source(capability: PidSource) -> PidSource:
    """
    Raises:
        ConfigurationError: If ``capability`` cannot be called.
    """
    if not callable(capability):
        raise ConfigurationError(
            f"pid source must be callable, got {type(capability).__name__}"
        )
    return capability


class ProcessConfig:
    """
    Mailbox directory, wake-up signal and pid source for one worker process.

    Built once at process start and handed to both the broadcaster and the
    listener.
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        mailbox_dir: Optional[Union[str, Path]] = None,
        signal_name: Optional[Union[str, int, signal.Signals]] = None,
    ):
        self.root = Path(root) if root is not None else Path(os.getcwd())
        self._mailbox_directory: Optional[Path] = None
        self._signal: Optional[signal.Signals] = None
        self._pid_source: Optional[PidSource] = None

        if mailbox_dir is not None:
            self.mailbox_directory(mailbox_dir)
        if signal_name is not None:
            self.signal_kind(signal_name)

    def mailbox_directory(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Fix (on first call) and return the mailbox directory.

        Relative paths are resolved against ``root``; absolute paths are used
        as-is. The directory is created if missing.
        """
        if self._mailbox_directory is None:
            directory = Path(path) if path is not None else Path(DEFAULT_MAILBOX_DIR)
            if not directory.is_absolute():
                directory = self.root / directory
            directory.mkdir(parents=True, exist_ok=True)
            self._mailbox_directory = directory
        return self._mailbox_directory

    def signal_kind(
        self, name: Optional[Union[str, int, signal.Signals]] = None
    ) -> signal.Signals:
        """Fix (on first call) and return the signal that wakes listeners."""
        if self._signal is None:
            self._signal = resolve_signal(name) if name is not None else DEFAULT_SIGNAL
        return self._signal

    def pid_source(self, capability: Optional[PidSource] = None) -> Optional[PidSource]:
        """
        Fix (on first call with a capability) and return the pid source.

        Until a pid source is set the whole mechanism is inert.
        """
        if self._pid_source is None and capability is not None:
            self._pid_source = check_pid_source(capability)
        return self._pid_source

    @property
    def enabled(self) -> bool:
        return self._pid_source is not None
