"""
Registry engine interface.

An engine exposes the host's registry primitives one-to-one. Every
primitive returns a native status code; out-parameters are returned
alongside it as a tuple and are meaningless unless the status is
``ERROR_SUCCESS`` (or ``ERROR_MORE_DATA`` for a reported size).

Raw handles are plain integers. Predefined roots are the values of
:class:`~reg_access.constants.RootKey`.
"""

import abc
from typing import NamedTuple, Optional, Tuple

from .constants import CharWidth


class KeyInfo(NamedTuple):
    """Aggregate metadata of a key, as reported by the info query."""

    subkeys: int
    max_subkey_len: int
    values: int
    max_value_name_len: int
    max_value_len: int
    last_write_time: int


class RegistryEngine(abc.ABC):
    """The host registry primitives this package builds on.

    Attributes:
        width: Character width of the text units this engine reads and
            writes in caller-supplied buffers.
    """

    width: CharWidth = CharWidth.WIDE

    @abc.abstractmethod
    def create_key(self, hkey: int, subkey: str, rights: int) -> Tuple[int, int, int]:
        """Create or open ``subkey``.

        Returns:
            ``(status, new_hkey, disposition)`` where disposition is
            ``REG_CREATED_NEW_KEY`` or ``REG_OPENED_EXISTING_KEY``.
        """

    @abc.abstractmethod
    def open_key(self, hkey: int, subkey: str, rights: int) -> Tuple[int, int]:
        """Open an existing key. Returns ``(status, new_hkey)``."""

    @abc.abstractmethod
    def open_current_user(self, rights: int) -> Tuple[int, int]:
        """Open the current user's root as seen by the calling thread."""

    @abc.abstractmethod
    def close_key(self, hkey: int) -> int:
        """Release ``hkey``. Returns the status."""

    @abc.abstractmethod
    def query_info_key(self, hkey: int) -> Tuple[int, Optional[KeyInfo]]:
        """Return ``(status, KeyInfo)``. Name lengths are in characters."""

    @abc.abstractmethod
    def enum_key(self, hkey: int, index: int, buffer: bytearray) -> Tuple[int, int]:
        """Write the name of subkey ``index`` into ``buffer``.

        ``buffer`` holds ``len(buffer) // width.unit`` characters including
        the terminator.

        Returns:
            ``(status, chars)`` with the name length in characters, not
            counting the terminator. ``ERROR_NO_MORE_ITEMS`` past the end.
        """

    @abc.abstractmethod
    def enum_value(self, hkey: int, index: int, buffer: bytearray) -> Tuple[int, int]:
        """Like :meth:`enum_key`, for value names."""

    @abc.abstractmethod
    def set_value(self, hkey: int, name: Optional[str], kind: int, data: bytes) -> int:
        """Store ``data`` as value ``name`` of type ``kind``."""

    @abc.abstractmethod
    def get_value(
        self, hkey: int, subkey: Optional[str], name: Optional[str], flags: int, buffer: bytearray
    ) -> Tuple[int, int, int]:
        """Fetch a value into ``buffer``.

        Returns:
            ``(status, kind, size)``. On ``ERROR_MORE_DATA`` ``size`` is the
            exact number of bytes required; on success it is the number of
            bytes written.
        """

    @abc.abstractmethod
    def delete_key(self, hkey: int, subkey: str, rights: int) -> int:
        """Delete a childless ``subkey``; ``rights`` selects the view."""

    @abc.abstractmethod
    def delete_tree(self, hkey: int, subkey: Optional[str]) -> int:
        """Delete ``subkey`` recursively, or every child when None."""

    @abc.abstractmethod
    def delete_value(self, hkey: int, name: Optional[str]) -> int:
        """Delete value ``name``."""

    @abc.abstractmethod
    def expand_environment_strings(self, source: str, buffer: bytearray) -> int:
        """Expand ``%VAR%`` references of ``source`` into ``buffer``.

        Returns:
            Characters required including the terminator, or 0 on failure.
        """

    @abc.abstractmethod
    def format_message(self, status: int, language: int = 0) -> Optional[str]:
        """The host's message text for ``status``, or None."""
