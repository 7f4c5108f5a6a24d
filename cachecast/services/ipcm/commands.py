"""
Invalidation commands and their on-disk encoding.

A command is an operation name followed by its arguments. On the wire it is
a JSON array with the operation first:

    ["clear_cache_matching", "user:", "banner"]

Tuple arguments are written as ``{"__tuple__": [...]}`` so a receiver gets
back exactly the key the sender cleared.

The operation travels as a plain string; whether the receiver knows it is
decided at dispatch time (see Operation.parse), so workers running different
code versions can still talk to each other.
"""

import hashlib
import json
from enum import Enum
from typing import Any, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, StrictStr, ValidationError, field_validator

from cachecast.services.ipcm.results import MalformedCommandError


_TUPLE_TAG = "__tuple__"


def _pack(value: Any) -> Any:
    if isinstance(value, tuple):
        return {_TUPLE_TAG: [_pack(v) for v in value]}
    if isinstance(value, list):
        return [_pack(v) for v in value]
    if isinstance(value, dict):
        return {k: _pack(v) for k, v in value.items()}
    return value


def _unpack(obj: dict) -> Any:
    if len(obj) == 1 and _TUPLE_TAG in obj:
        return tuple(obj[_TUPLE_TAG])
    return obj


class Operation(str, Enum):
    """The closed set of cache-clearing operations a listener will apply."""

    CLEAR_ALL_CACHE = "clear_all_cache"
    CLEAR_CACHE_MATCHING = "clear_cache_matching"
    CLEAR_ALL_COMPILED_TEMPLATES = "clear_all_compiled_templates"
    CLEAR_COMPILED_TEMPLATES_MATCHING = "clear_compiled_templates_matching"

    @classmethod
    def parse(cls, value: Any) -> Optional["Operation"]:
        """Return the matching member, or None for anything unrecognized."""
        try:
            return cls(value)
        except ValueError:
            return None


class InvalidationCommand(BaseModel):
    """One cache-clearing request addressed to sibling workers."""

    model_config = ConfigDict(frozen=True)

    operation: StrictStr
    arguments: Tuple[Any, ...] = ()

    @field_validator("operation", mode="before")
    @classmethod
    def _unwrap_enum(cls, value: Any) -> Any:
        if isinstance(value, Operation):
            return value.value
        return value

    @classmethod
    def of(cls, operation: Union[Operation, str], *arguments: Any) -> "InvalidationCommand":
        return cls(operation=operation, arguments=arguments)

    def encode(self) -> bytes:
        """
        Serialize to the mailbox payload.

        Tuples are tagged so they decode as tuples again (cache keys are
        often tuples).

        Raises:
            TypeError: If an argument is not JSON-serializable, or would not
                decode back to an equal value (e.g. non-string dict keys).
        """
        raw = json.dumps(
            [self.operation, *(_pack(a) for a in self.arguments)],
            separators=(",", ":"),
        ).encode("utf-8")
        if json.loads(raw, object_hook=_unpack)[1:] != list(self.arguments):
            raise TypeError("arguments do not survive encoding unchanged")
        return raw

    def digest(self) -> str:
        """Short content hash used to keep message file names unique."""
        return hashlib.sha1(self.encode()).hexdigest()[:12]

    @classmethod
    def decode(cls, raw: bytes) -> "InvalidationCommand":
        """
        Parse a mailbox payload.

        Undecodable bytes and decodable-but-wrong-shape values are both
        reported as MalformedCommandError.
        """
        try:
            data = json.loads(raw.decode("utf-8"), object_hook=_unpack)
        except (UnicodeDecodeError, ValueError, RecursionError) as e:
            raise MalformedCommandError(f"undecodable payload: {e}") from e

        if not isinstance(data, list) or not data:
            raise MalformedCommandError(
                f"expected a non-empty array, got {type(data).__name__}"
            )

        try:
            return cls(operation=data[0], arguments=tuple(data[1:]))
        except ValidationError as e:
            raise MalformedCommandError(f"invalid command: {e}") from e
