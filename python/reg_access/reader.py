"""
Size-negotiated value reads.

The query primitive only reports how large a value is after a fetch into
a too-small buffer fails. :func:`read_value` performs the fetch, and when
the engine answers ``ERROR_MORE_DATA`` reallocates to exactly the reported
size and fetches once more.
"""

import logging
from typing import Iterable, NamedTuple, Optional

from .constants import ERROR_MORE_DATA, ERROR_SUCCESS, ValueKind
from .errors import translate_status

logger = logging.getLogger(__name__)

DEFAULT_INITIAL_SIZE = 32


class RawValue(NamedTuple):
    """Bytes of a value together with the kind the engine reported."""

    data: bytes
    kind: ValueKind


class ValueBuffer:
    """A byte buffer owned by exactly one read.

    Usable as a context manager; the storage is released on exit whether
    or not the read succeeded.
    """

    def __init__(self, size: int):
        self.data: Optional[bytearray] = bytearray(size)

    @property
    def capacity(self) -> int:
        return len(self.data) if self.data is not None else 0

    @property
    def released(self) -> bool:
        return self.data is None

    def resize(self, size: int) -> None:
        """Replace the storage with ``size`` zeroed bytes."""
        self.data = bytearray(size)

    def take(self, size: int) -> bytes:
        """Copy the first ``size`` meaningful bytes out of the buffer."""
        return bytes(self.data[:size])

    def release(self) -> None:
        self.data = None

    def __enter__(self) -> "ValueBuffer":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def restrict_flags(kinds: Iterable[ValueKind]) -> int:
    flags = 0
    for kind in kinds:
        flags |= ValueKind(kind).restrict_flag
    return flags


def read_value(
    engine,
    hkey: int,
    name: Optional[str],
    kinds: Iterable[ValueKind],
    *,
    subkey: Optional[str] = None,
    flags: int = 0,
    initial_size: int = DEFAULT_INITIAL_SIZE,
    language: int = 0,
) -> RawValue:
    """Fetch value ``name`` of ``hkey``, restricted to ``kinds``.

    Args:
        engine: The registry engine issuing the query primitive.
        hkey: Raw handle of the key holding the value.
        name: Value name; None or "" addresses the default value.
        kinds: Value kinds the caller accepts.
        subkey: Optional subkey of ``hkey`` to read from.
        flags: Extra query flags, e.g. ``RRF_NOEXPAND``.
        initial_size: Size in bytes of the first buffer.
        language: Language id for error messages.

    Returns:
        The value bytes, exactly as many as the engine reported, and kind.

    Raises:
        NativeOperationError or subclass: If either fetch fails.
    """
    query_flags = restrict_flags(kinds) | flags
    with ValueBuffer(initial_size) as buffer:
        status, kind, size = engine.get_value(hkey, subkey, name, query_flags, buffer.data)
        if status == ERROR_MORE_DATA:
            logger.debug("Value %r needs %d bytes, retrying (had %d)", name, size, buffer.capacity)
            buffer.resize(size)
            status, kind, size = engine.get_value(hkey, subkey, name, query_flags, buffer.data)
        if status != ERROR_SUCCESS:
            buffer.release()
            translate_status(status, engine.format_message, language)
        return RawValue(buffer.take(size), ValueKind(kind))
