"""
Typed value access and key queries.

:class:`ValueAccessors` is mixed into :class:`~reg_access.keys.KeyHandle`;
every method operates on the handle's own key.
"""

import logging
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional

from .constants import (
    ERROR_NO_MORE_ITEMS,
    ERROR_SUCCESS,
    RRF_NOEXPAND,
    ValueKind,
)
from .engine import KeyInfo
from .errors import check_status, translate_status
from .reader import ValueBuffer, read_value

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)

_INT_RANGES = {
    4: (-(1 << 31), (1 << 32) - 1),
    8: (-(1 << 63), (1 << 64) - 1),
}


def _pack_int(value: int, width: int) -> bytes:
    low, high = _INT_RANGES[width]
    if not low <= value <= high:
        raise ValueError(f"{value} does not fit in {width * 8} bits")
    return (value & ((1 << (width * 8)) - 1)).to_bytes(width, "little")


class ValueAccessors:
    """Read, write and enumerate the values and subkeys of one key."""

    # provided by KeyHandle
    hkey: int
    path: str
    registry: "Registry"

    def _check(self, status: int) -> None:
        check_status(status, self.registry.engine.format_message, self.registry.config.message_language)

    def _set(self, name: Optional[str], kind: ValueKind, data: bytes) -> None:
        logger.debug("Writing %s %r under %r (%d bytes)", kind.name, name, self.path, len(data))
        self._check(self.registry.engine.set_value(self.hkey, name, int(kind), data))

    def _get(self, name: Optional[str], kind: ValueKind, flags: int = 0) -> bytes:
        config = self.registry.config
        return read_value(
            self.registry.engine,
            self.hkey,
            name,
            [kind],
            flags=flags,
            initial_size=config.initial_buffer_size,
            language=config.message_language,
        ).data

    # writers

    def write_string(self, name: Optional[str], value: str) -> None:
        """Write a ``REG_SZ`` value."""
        self._set(name, ValueKind.REG_SZ, self.registry.config.codec.encode_terminated(value))

    def write_expand_string(self, name: Optional[str], value: str) -> None:
        """Write a ``REG_EXPAND_SZ`` value. References are stored unexpanded."""
        self._set(name, ValueKind.REG_EXPAND_SZ, self.registry.config.codec.encode_terminated(value))

    def write_multi_string(self, name: Optional[str], values: Iterable[Optional[str]]) -> None:
        """Write a ``REG_MULTI_SZ`` value. Empty and None entries are skipped."""
        self._set(name, ValueKind.REG_MULTI_SZ, self.registry.config.codec.encode_multi(values))

    def write_int32(self, name: Optional[str], value: int) -> None:
        """Write a ``REG_DWORD`` value.

        Raises:
            ValueError: If ``value`` does not fit in 32 bits.
        """
        self._set(name, ValueKind.REG_DWORD, _pack_int(value, 4))

    def write_int64(self, name: Optional[str], value: int) -> None:
        """Write a ``REG_QWORD`` value.

        Raises:
            ValueError: If ``value`` does not fit in 64 bits.
        """
        self._set(name, ValueKind.REG_QWORD, _pack_int(value, 8))

    def write_binary(self, name: Optional[str], value: bytes) -> None:
        """Write a ``REG_BINARY`` value of exactly ``len(value)`` bytes."""
        self._set(name, ValueKind.REG_BINARY, bytes(value))

    # readers

    def read_string(self, name: Optional[str]) -> str:
        """Read a ``REG_SZ`` value.

        Raises:
            RegistryKeyNotFoundError: If the value does not exist.
            RegistryTypeMismatchError: If the value is not a ``REG_SZ``.
        """
        return self.registry.config.codec.decode_terminated(self._get(name, ValueKind.REG_SZ))

    def read_expand_string(self, name: Optional[str]) -> str:
        """Read a ``REG_EXPAND_SZ`` value without expanding it.

        Use :meth:`Registry.expand_env_string` to substitute variables.
        """
        data = self._get(name, ValueKind.REG_EXPAND_SZ, RRF_NOEXPAND)
        return self.registry.config.codec.decode_terminated(data)

    def read_multi_string(self, name: Optional[str]) -> List[str]:
        """Read a ``REG_MULTI_SZ`` value."""
        return self.registry.config.codec.decode_multi(self._get(name, ValueKind.REG_MULTI_SZ))

    def read_int32(self, name: Optional[str], signed: bool = True) -> int:
        """Read a ``REG_DWORD`` value, as a signed integer unless ``signed`` is False."""
        return int.from_bytes(self._get(name, ValueKind.REG_DWORD)[:4], "little", signed=signed)

    def read_int64(self, name: Optional[str], signed: bool = True) -> int:
        """Read a ``REG_QWORD`` value, as a signed integer unless ``signed`` is False."""
        return int.from_bytes(self._get(name, ValueKind.REG_QWORD)[:8], "little", signed=signed)

    def read_binary(self, name: Optional[str]) -> bytes:
        """Read a ``REG_BINARY`` value."""
        return self._get(name, ValueKind.REG_BINARY)

    def delete_value(self, name: Optional[str]) -> None:
        """Remove value ``name`` from this key."""
        self._check(self.registry.engine.delete_value(self.hkey, name))

    # key queries

    def query_info(self) -> KeyInfo:
        """Aggregate metadata of this key. Requires query rights."""
        status, info = self.registry.engine.query_info_key(self.hkey)
        self._check(status)
        return info

    def count_values(self) -> int:
        """Number of values, not counting an unset default value."""
        return self.query_info().values

    def count_subkeys(self) -> int:
        return self.query_info().subkeys

    def last_write_time(self) -> int:
        """Last write time of this key as a FILETIME integer."""
        return self.query_info().last_write_time

    def _enumerate(self, primitive, max_len: int, what: str) -> Iterator[str]:
        codec = self.registry.config.codec
        index = 0
        with ValueBuffer((max_len + 1) * codec.unit) as buffer:
            while True:
                status, chars = primitive(self.hkey, index, buffer.data)
                if status == ERROR_NO_MORE_ITEMS:
                    logger.debug("Enumerated %d %s of %r", index, what, self.path)
                    return
                if status != ERROR_SUCCESS:
                    buffer.release()
                    translate_status(status, self.registry.engine.format_message,
                                     self.registry.config.message_language)
                yield codec.decode(buffer.data[:chars * codec.unit])
                index += 1

    def enum_subkeys(self) -> Iterator[str]:
        """Yield the names of this key's subkeys in engine order.

        The sequence is lazy and can be consumed once. Nothing touches the
        key until the first ``next()``, so a closed handle or missing
        rights raise from there rather than from this call.
        """
        yield from self._enumerate(
            self.registry.engine.enum_key, self.query_info().max_subkey_len, "subkeys")

    def enum_values(self) -> Iterator[str]:
        """Yield the names of this key's values in engine order.

        Lazy like :meth:`enum_subkeys`; errors surface on the first ``next()``.
        """
        yield from self._enumerate(
            self.registry.engine.enum_value, self.query_info().max_value_name_len, "values")

    # deletion

    def del_subkey(self, subkey: str, rights: int = 0) -> None:
        """Delete a childless ``subkey`` and its values.

        Args:
            subkey: Subkey to delete, relative to this key.
            rights: Registry view flag (``WOW64_32KEY`` or ``WOW64_64KEY``).

        Raises:
            NativeOperationError: If the subkey is missing or has children.
        """
        logger.debug("Deleting subkey %r of %r", subkey, self.path)
        self._check(self.registry.engine.delete_key(self.hkey, subkey, int(rights)))

    def del_tree(self, subkey: Optional[str] = None) -> None:
        """Delete ``subkey`` with everything beneath it.

        With no ``subkey`` the children and values of this key are deleted
        and the key itself remains. Requires delete, enumerate and query
        rights.
        """
        logger.debug("Deleting tree %r of %r", subkey, self.path)
        self._check(self.registry.engine.delete_tree(self.hkey, subkey))
