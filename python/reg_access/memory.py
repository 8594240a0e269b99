"""
In-process registry engine.

Implements the :class:`~reg_access.engine.RegistryEngine` primitives over a
dict-based tree so the package runs, and is tested, without a Windows host.
Status codes, size reporting and type restriction follow the host's
RegGetValue/RegEnumKeyEx conventions. The 32/64-bit view flags are accepted
and ignored: there is a single view.
"""

import functools
import itertools
import os
import re
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .codec import TextCodec
from .constants import (
    ERROR_ACCESS_DENIED,
    ERROR_FILE_NOT_FOUND,
    ERROR_INVALID_HANDLE,
    ERROR_INVALID_PARAMETER,
    ERROR_KEY_DELETED,
    ERROR_MORE_DATA,
    ERROR_NO_MORE_ITEMS,
    ERROR_SUCCESS,
    ERROR_UNSUPPORTED_TYPE,
    MAX_EXPAND_CHARS,
    REG_CREATED_NEW_KEY,
    REG_OPENED_EXISTING_KEY,
    RRF_NOEXPAND,
    RRF_RT_REG_EXPAND_SZ,
    AccessRights,
    CharWidth,
    RootKey,
    ValueKind,
)
from .engine import KeyInfo, RegistryEngine

# difference between Windows epoch (1601-01-01) and Unix epoch (1970-01-01)
# in nanoseconds: 11644473600 seconds
_WINDOWS_EPOCH_DIFF_NS = 11644473600 * 1_000_000_000

_ENV_REFERENCE = re.compile(r"%([^%]+)%")

MESSAGES = {
    ERROR_FILE_NOT_FOUND: "The system cannot find the file specified.",
    ERROR_ACCESS_DENIED: "Access is denied.",
    ERROR_INVALID_HANDLE: "The handle is invalid.",
    ERROR_INVALID_PARAMETER: "The parameter is incorrect.",
    ERROR_MORE_DATA: "More data is available.",
    ERROR_NO_MORE_ITEMS: "No more data is available.",
    ERROR_KEY_DELETED: "Illegal operation attempted on a registry key that has been marked for deletion.",
    ERROR_UNSUPPORTED_TYPE: "Data of this type is not supported.",
}


def time_ns_to_filetime(ns: int) -> int:
    """Convert nanoseconds since the Unix epoch to a Windows FILETIME."""
    return (ns + _WINDOWS_EPOCH_DIFF_NS) // 100


def expand_references(source: str) -> str:
    """Substitute ``%NAME%`` with environment variables; unknown names stay."""
    return _ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), source)


@dataclass
class _Node:
    name: str
    children: Dict[str, "_Node"] = field(default_factory=dict)
    # lower-cased value name -> (name, kind, data)
    values: Dict[str, Tuple[str, int, bytes]] = field(default_factory=dict)
    last_modified: int = field(default_factory=time.time_ns)
    deleted: bool = False

    def touch(self) -> None:
        self.last_modified = time.time_ns()

    def mark_deleted(self) -> None:
        self.deleted = True
        for child in self.children.values():
            child.mark_deleted()


@dataclass
class _OpenKey:
    node: _Node
    rights: int


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


class MemoryEngine(RegistryEngine):
    """A registry held in memory.

    Args:
        width: Character width of text written into caller buffers.
        narrow_encoding: Code page for NARROW text.
    """

    def __init__(self, width: CharWidth = CharWidth.WIDE, narrow_encoding: str = "utf-8"):
        self.width = width
        self.codec = TextCodec(width, narrow_encoding)
        self._lock = threading.RLock()
        self._roots = {root: _Node(root.name) for root in RootKey}
        self._handles: Dict[int, _OpenKey] = {}
        self._next_handle = itertools.count(0x100, 4)

    def reset(self) -> None:
        """Drop every key, value and open handle."""
        with self._lock:
            self._roots = {root: _Node(root.name) for root in RootKey}
            self._handles.clear()

    @property
    def open_handles(self) -> int:
        """Number of handles issued and not yet closed."""
        return len(self._handles)

    # helpers

    def _lookup(self, hkey: int) -> Tuple[int, Optional[_OpenKey]]:
        if hkey in self._roots.keys():
            return ERROR_SUCCESS, _OpenKey(self._roots[RootKey(hkey)], int(AccessRights.ALL_ACCESS))
        entry = self._handles.get(hkey)
        if entry is None:
            return ERROR_INVALID_HANDLE, None
        if entry.node.deleted:
            return ERROR_KEY_DELETED, None
        return ERROR_SUCCESS, entry

    def _checked(self, hkey: int, required: int = 0) -> Tuple[int, Optional[_OpenKey]]:
        status, entry = self._lookup(hkey)
        if status == ERROR_SUCCESS and entry.rights & required != required:
            return ERROR_ACCESS_DENIED, None
        return status, entry

    @staticmethod
    def _segments(subkey: Optional[str]) -> Optional[List[str]]:
        if not subkey:
            return []
        parts = subkey.split("\\")
        if any(not part for part in parts):
            return None
        return parts

    def _walk(self, node: _Node, parts: List[str]) -> Optional[_Node]:
        for part in parts:
            node = node.children.get(part.lower())
            if node is None:
                return None
        return node

    def _issue(self, node: _Node, rights: int) -> int:
        hkey = next(self._next_handle)
        self._handles[hkey] = _OpenKey(node, rights)
        return hkey

    def _write_text(self, text: str, buffer: bytearray) -> Tuple[int, int]:
        encoded = self.codec.encode(text)
        chars = len(encoded) // self.codec.unit
        if len(buffer) // self.codec.unit < chars + 1:
            return ERROR_MORE_DATA, chars + 1
        terminated = encoded + self.codec.terminator
        buffer[:len(terminated)] = terminated
        return ERROR_SUCCESS, chars

    def _name_len(self, name: str) -> int:
        return len(self.codec.encode(name)) // self.codec.unit

    # primitives

    @_locked
    def create_key(self, hkey, subkey, rights):
        status, parent = self._lookup(hkey)
        if status != ERROR_SUCCESS:
            return status, 0, 0
        if hkey in self._handles and not parent.rights & AccessRights.CREATE_SUB_KEY:
            return ERROR_ACCESS_DENIED, 0, 0
        parts = self._segments(subkey)
        if parts is None:
            return ERROR_INVALID_PARAMETER, 0, 0
        node = parent.node
        disposition = REG_OPENED_EXISTING_KEY
        for part in parts:
            child = node.children.get(part.lower())
            if child is None:
                child = _Node(part)
                node.children[part.lower()] = child
                node.touch()
                disposition = REG_CREATED_NEW_KEY
            node = child
        return ERROR_SUCCESS, self._issue(node, rights), disposition

    @_locked
    def open_key(self, hkey, subkey, rights):
        status, parent = self._lookup(hkey)
        if status != ERROR_SUCCESS:
            return status, 0
        parts = self._segments(subkey)
        if parts is None:
            return ERROR_INVALID_PARAMETER, 0
        node = self._walk(parent.node, parts)
        if node is None:
            return ERROR_FILE_NOT_FOUND, 0
        return ERROR_SUCCESS, self._issue(node, rights)

    @_locked
    def open_current_user(self, rights):
        return ERROR_SUCCESS, self._issue(self._roots[RootKey.HKEY_CURRENT_USER], rights)

    @_locked
    def close_key(self, hkey):
        if hkey in self._roots.keys():
            return ERROR_SUCCESS
        if self._handles.pop(hkey, None) is None:
            return ERROR_INVALID_HANDLE
        return ERROR_SUCCESS

    @_locked
    def query_info_key(self, hkey):
        status, entry = self._checked(hkey, AccessRights.QUERY_VALUE)
        if status != ERROR_SUCCESS:
            return status, None
        node = entry.node
        children = list(node.children.values())
        values = list(node.values.values())
        return ERROR_SUCCESS, KeyInfo(
            subkeys=len(children),
            max_subkey_len=max((self._name_len(c.name) for c in children), default=0),
            values=len(values),
            max_value_name_len=max((self._name_len(name) for name, _, _ in values), default=0),
            max_value_len=max((len(data) for _, _, data in values), default=0),
            last_write_time=time_ns_to_filetime(node.last_modified),
        )

    @_locked
    def enum_key(self, hkey, index, buffer):
        status, entry = self._checked(hkey, AccessRights.ENUMERATE_SUB_KEYS)
        if status != ERROR_SUCCESS:
            return status, 0
        children = list(entry.node.children.values())
        if index >= len(children):
            return ERROR_NO_MORE_ITEMS, 0
        return self._write_text(children[index].name, buffer)

    @_locked
    def enum_value(self, hkey, index, buffer):
        status, entry = self._checked(hkey, AccessRights.QUERY_VALUE)
        if status != ERROR_SUCCESS:
            return status, 0
        values = list(entry.node.values.values())
        if index >= len(values):
            return ERROR_NO_MORE_ITEMS, 0
        return self._write_text(values[index][0], buffer)

    @_locked
    def set_value(self, hkey, name, kind, data):
        status, entry = self._checked(hkey, AccessRights.SET_VALUE)
        if status != ERROR_SUCCESS:
            return status
        name = name or ""
        entry.node.values[name.lower()] = (name, int(kind), bytes(data))
        entry.node.touch()
        return ERROR_SUCCESS

    @_locked
    def get_value(self, hkey, subkey, name, flags, buffer):
        status, entry = self._checked(hkey, AccessRights.QUERY_VALUE)
        if status != ERROR_SUCCESS:
            return status, 0, 0
        if flags & RRF_RT_REG_EXPAND_SZ and not flags & RRF_NOEXPAND:
            return ERROR_INVALID_PARAMETER, 0, 0
        parts = self._segments(subkey)
        node = self._walk(entry.node, parts) if parts is not None else None
        if node is None:
            return ERROR_FILE_NOT_FOUND, 0, 0
        stored = node.values.get((name or "").lower())
        if stored is None:
            return ERROR_FILE_NOT_FOUND, 0, 0
        _, kind, data = stored
        if kind == ValueKind.REG_EXPAND_SZ and not flags & RRF_NOEXPAND:
            kind = ValueKind.REG_SZ
            data = self.codec.encode_terminated(expand_references(self.codec.decode_terminated(data)))
        if kind not in ValueKind.from_restrict_flags(flags):
            return ERROR_UNSUPPORTED_TYPE, kind, 0
        if kind in (ValueKind.REG_SZ, ValueKind.REG_EXPAND_SZ) and self.codec.find_terminator(data) < 0:
            data += self.codec.terminator
        if len(buffer) < len(data):
            return ERROR_MORE_DATA, kind, len(data)
        buffer[:len(data)] = data
        return ERROR_SUCCESS, kind, len(data)

    @_locked
    def delete_key(self, hkey, subkey, rights):
        status, entry = self._lookup(hkey)
        if status != ERROR_SUCCESS:
            return status
        parts = self._segments(subkey)
        if not parts:
            return ERROR_INVALID_PARAMETER
        parent = self._walk(entry.node, parts[:-1])
        node = parent.children.get(parts[-1].lower()) if parent is not None else None
        if node is None:
            return ERROR_FILE_NOT_FOUND
        if node.children:
            return ERROR_ACCESS_DENIED
        del parent.children[parts[-1].lower()]
        node.mark_deleted()
        parent.touch()
        return ERROR_SUCCESS

    @_locked
    def delete_tree(self, hkey, subkey):
        required = AccessRights.DELETE | AccessRights.ENUMERATE_SUB_KEYS | AccessRights.QUERY_VALUE
        status, entry = self._checked(hkey, required)
        if status != ERROR_SUCCESS:
            return status
        parts = self._segments(subkey)
        if parts is None:
            return ERROR_INVALID_PARAMETER
        if not parts:
            node = entry.node
            for child in node.children.values():
                child.mark_deleted()
            node.children.clear()
            node.values.clear()
            node.touch()
            return ERROR_SUCCESS
        parent = self._walk(entry.node, parts[:-1])
        node = parent.children.pop(parts[-1].lower(), None) if parent is not None else None
        if node is None:
            return ERROR_FILE_NOT_FOUND
        node.mark_deleted()
        parent.touch()
        return ERROR_SUCCESS

    @_locked
    def delete_value(self, hkey, name):
        status, entry = self._checked(hkey, AccessRights.SET_VALUE)
        if status != ERROR_SUCCESS:
            return status
        if entry.node.values.pop((name or "").lower(), None) is None:
            return ERROR_FILE_NOT_FOUND
        entry.node.touch()
        return ERROR_SUCCESS

    def expand_environment_strings(self, source, buffer):
        if len(source) > MAX_EXPAND_CHARS:
            return 0
        encoded = self.codec.encode_terminated(expand_references(source))
        if len(encoded) <= len(buffer):
            buffer[:len(encoded)] = encoded
        return len(encoded) // self.codec.unit

    def format_message(self, status, language=0):
        return MESSAGES.get(status)
