"""Pytest configuration and fixtures for cachecast tests."""

import pytest

from cachecast.services.ipcm import Listener, Mailbox, ProcessConfig


class RecordingHost:
    """Host double that records every cache operation applied to it."""

    def __init__(self):
        self.calls = []

    def clear_all_cache(self, *args):
        self.calls.append(("clear_all_cache", args))

    def clear_cache_matching(self, *patterns):
        self.calls.append(("clear_cache_matching", patterns))

    def clear_all_compiled_templates(self, *args):
        self.calls.append(("clear_all_compiled_templates", args))

    def clear_compiled_templates_matching(self, *patterns):
        self.calls.append(("clear_compiled_templates_matching", patterns))


@pytest.fixture
def host():
    return RecordingHost()


@pytest.fixture
def config(tmp_path):
    """Process config rooted in a temp dir; SIGUSR1 so nothing else reacts."""
    return ProcessConfig(root=tmp_path, signal_name="SIGUSR1")


@pytest.fixture
def mailbox(config):
    return Mailbox(config.mailbox_directory())


@pytest.fixture
def listener(config, host, mailbox):
    listener = Listener(config, host, mailbox=mailbox)
    yield listener
    listener.uninstall()
