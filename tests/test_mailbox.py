"""
Test the mailbox directory message files.
"""

from cachecast.services.ipcm import InvalidationCommand, Mailbox


def test_write_names_file_after_target_pid(mailbox):
    path = mailbox.write(1234, InvalidationCommand.of("clear_all_cache"))

    assert path.parent == mailbox.directory
    assert path.name.startswith("1234.")
    assert mailbox.read(path) == b'["clear_all_cache"]'


def test_messages_for_only_lists_own_pid(mailbox):
    command = InvalidationCommand.of("clear_all_cache")
    mine = mailbox.write(1234, command)
    mailbox.write(12345, command)
    mailbox.write(123, command)

    assert mailbox.messages_for(1234) == [mine]


def test_repeated_writes_never_collide(mailbox):
    command = InvalidationCommand.of("clear_cache_matching", "same")

    paths = [mailbox.write(1234, command) for _ in range(25)]

    assert len(set(paths)) == 25
    assert sorted(mailbox.messages_for(1234)) == sorted(paths)


def test_no_temporary_files_left_behind(mailbox):
    mailbox.write(1234, InvalidationCommand.of("clear_all_cache"))

    assert [p.name for p in mailbox.directory.iterdir() if p.name.startswith(".")] == []


def test_discard_is_idempotent(mailbox):
    path = mailbox.write(1234, InvalidationCommand.of("clear_all_cache"))

    assert mailbox.discard(path) is True
    assert mailbox.discard(path) is False
    assert mailbox.messages_for(1234) == []


def test_mailbox_creates_directory(tmp_path):
    directory = tmp_path / "deep" / "ipcm"

    Mailbox(directory)

    assert directory.is_dir()
