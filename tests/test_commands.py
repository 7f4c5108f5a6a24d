"""
Test invalidation command encoding and decoding.
"""

import json

import pytest

from cachecast.services.ipcm import InvalidationCommand, MalformedCommandError, Operation


def test_operation_is_first_element_on_the_wire():
    command = InvalidationCommand.of("clear_cache_matching", "user:", "banner")

    assert json.loads(command.encode()) == ["clear_cache_matching", "user:", "banner"]


def test_enum_member_travels_as_plain_string():
    command = InvalidationCommand.of(Operation.CLEAR_ALL_CACHE)

    assert command.operation == "clear_all_cache"
    assert command.arguments == ()
    assert command.encode() == b'["clear_all_cache"]'


def test_decode_keeps_arguments_in_order():
    command = InvalidationCommand.decode(b'["clear_cache_matching", "b", 2, null]')

    assert command.operation == "clear_cache_matching"
    assert command.arguments == ("b", 2, None)


def test_decode_accepts_unknown_operation_names():
    # Recognition is the listener's job, not the codec's
    command = InvalidationCommand.decode(b'["flush_everything_v2"]')

    assert command.operation == "flush_everything_v2"
    assert Operation.parse(command.operation) is None


@pytest.mark.parametrize(
    "payload",
    [
        b"\xff\xfe\x00",
        b"",
        b"not json",
        b'{"operation": "clear_all_cache"}',
        b"[]",
        b'"clear_all_cache"',
        b"[1, 2]",
        b"[null]",
    ],
)
def test_decode_rejects_malformed_payloads(payload):
    with pytest.raises(MalformedCommandError):
        InvalidationCommand.decode(payload)


def test_unserializable_argument_fails_to_encode():
    command = InvalidationCommand.of("clear_cache_matching", object())

    with pytest.raises(TypeError):
        command.encode()


def test_digest_depends_on_content():
    a = InvalidationCommand.of("clear_cache_matching", "a")
    b = InvalidationCommand.of("clear_cache_matching", "b")

    assert a.digest() == InvalidationCommand.of("clear_cache_matching", "a").digest()
    assert a.digest() != b.digest()


def test_operation_parse():
    assert Operation.parse("clear_all_compiled_templates") is Operation.CLEAR_ALL_COMPILED_TEMPLATES
    assert Operation.parse(Operation.CLEAR_CACHE_MATCHING) is Operation.CLEAR_CACHE_MATCHING
    assert Operation.parse("clear_cache") is None
    assert Operation.parse(42) is None


def test_tuple_arguments_decode_as_tuples():
    command = InvalidationCommand.of("clear_cache_matching", ("user", 1), "plain")

    decoded = InvalidationCommand.decode(command.encode())

    assert decoded.arguments == (("user", 1), "plain")
    assert isinstance(decoded.arguments[0], tuple)


def test_nested_tuples_keep_their_type():
    command = InvalidationCommand.of(
        "clear_cache_matching", [("a", (1, 2)), {"k": ("v",)}]
    )

    (argument,) = InvalidationCommand.decode(command.encode()).arguments

    assert argument == [("a", (1, 2)), {"k": ("v",)}]
    assert isinstance(argument[0][1], tuple)
    assert isinstance(argument[1]["k"], tuple)


@pytest.mark.parametrize("argument", [{1: "a"}, {"__tuple__": [1]}, float("nan")])
def test_arguments_that_would_change_in_transit_fail_to_encode(argument):
    command = InvalidationCommand.of("clear_cache_matching", argument)

    with pytest.raises(TypeError):
        command.encode()
