"""
Test worker logging setup.
"""

import logging

import pytest

from cachecast.core.logging import IPCM_LOGGER, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    ipcm_level = logging.getLogger(IPCM_LOGGER).level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger(IPCM_LOGGER).setLevel(ipcm_level)


def test_records_carry_worker_pid():
    setup_logging("DEBUG")

    (handler,) = logging.getLogger().handlers
    record = logging.LogRecord(
        "cachecast.test", logging.INFO, __file__, 1, "hello", None, None
    )

    assert f"pid={record.process} |" in handler.format(record)
    assert logging.getLogger().level == logging.DEBUG


def test_ipcm_level_is_independent_of_root():
    setup_logging("WARNING", ipcm_level="debug")

    assert logging.getLogger(IPCM_LOGGER).level == logging.DEBUG
    assert logging.getLogger("cachecast.services.ipcm.broadcaster").isEnabledFor(
        logging.DEBUG
    )
    assert not logging.getLogger("cachecast.services.cache").isEnabledFor(logging.INFO)


def test_ipcm_level_defaults_to_root():
    setup_logging("ERROR")

    assert logging.getLogger(IPCM_LOGGER).level == logging.NOTSET
    assert not logging.getLogger(IPCM_LOGGER).isEnabledFor(logging.WARNING)
