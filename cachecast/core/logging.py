"""
Logging for cachecast worker processes.

Every worker of a pre-fork server writes to the same stdout, so each record
carries the pid of the worker that emitted it. The IPCM logger can be tuned
separately from the rest of the application.

Usage:
    from cachecast.core.logging import get_logger

    logger = get_logger(__name__)
    logger.info("Hello world")
"""

import logging
import sys
from typing import Optional

LOG_FORMAT = (
    "%(asctime)s | %(levelname)-8s | pid=%(process)d | %(name)s:%(lineno)d | %(message)s"
)
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

IPCM_LOGGER = "cachecast.services.ipcm"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(level: str = "INFO", ipcm_level: Optional[str] = None) -> None:
    """
    Configure the root logger for this worker.

    Called from the lifespan, so it runs once in every worker after the fork.

    Args:
        level: Root log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        ipcm_level: Level for the inter-process cache manager loggers.
            Defaults to inheriting ``level``.
    """
    logging.basicConfig(
        level=_level(level),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger(IPCM_LOGGER).setLevel(
        _level(ipcm_level) if ipcm_level else logging.NOTSET
    )

    # Request logs from every worker drown out the broadcast traces
    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)
