"""
Native registry engine over advapi32 and kernel32.

Every primitive is bound through ctypes with the ``W`` or ``A`` entry point
matching the configured character width. Statuses are returned exactly as
the host reports them.
"""

import ctypes
import logging
import sys
from ctypes import wintypes
from typing import Optional

from .codec import TextCodec
from .constants import ERROR_SUCCESS, CharWidth
from .engine import KeyInfo, RegistryEngine
from .errors import RegistryError

logger = logging.getLogger(__name__)

FORMAT_MESSAGE_ALLOCATE_BUFFER = 0x00000100
FORMAT_MESSAGE_IGNORE_INSERTS = 0x00000200
FORMAT_MESSAGE_FROM_SYSTEM = 0x00001000
FORMAT_MESSAGE_MAX_WIDTH_MASK = 0x000000FF

_FORMAT_FLAGS = (
    FORMAT_MESSAGE_ALLOCATE_BUFFER | FORMAT_MESSAGE_FROM_SYSTEM
    | FORMAT_MESSAGE_IGNORE_INSERTS | FORMAT_MESSAGE_MAX_WIDTH_MASK
)

HKEY = wintypes.HKEY
DWORD = wintypes.DWORD
LONG = wintypes.LONG
LPDWORD = ctypes.POINTER(DWORD)
PHKEY = ctypes.POINTER(HKEY)
PVOID = ctypes.c_void_p


def _as_array(buffer: bytearray):
    """Expose ``buffer`` to ctypes without copying it."""
    if not buffer:
        return None
    return (ctypes.c_char * len(buffer)).from_buffer(buffer)


class AdvapiEngine(RegistryEngine):
    """Registry engine backed by the host's registry API.

    Args:
        width: Selects the wide (``W``) or narrow (``A``) entry points.
        narrow_encoding: Code page of narrow strings, normally ``mbcs``.

    Raises:
        RegistryError: If the host is not Windows.
    """

    def __init__(self, width: CharWidth = CharWidth.WIDE, narrow_encoding: str = "mbcs"):
        if sys.platform != "win32":
            raise RegistryError("the native registry engine requires Windows")
        self.width = width
        self.codec = TextCodec(width, narrow_encoding)
        self._advapi = ctypes.WinDLL("advapi32")
        self._kernel = ctypes.WinDLL("kernel32")
        self._declare()

    def _bind(self, dll, name, argtypes, restype=LONG, suffixed=True):
        func = getattr(dll, name + (self.width.suffix if suffixed else ""))
        func.argtypes = argtypes
        func.restype = restype
        return func

    def _declare(self) -> None:
        text = wintypes.LPCWSTR if self.width is CharWidth.WIDE else wintypes.LPCSTR
        advapi, kernel = self._advapi, self._kernel
        self._create_key = self._bind(
            advapi, "RegCreateKeyEx",
            [HKEY, text, DWORD, PVOID, DWORD, DWORD, PVOID, PHKEY, LPDWORD])
        self._open_key = self._bind(advapi, "RegOpenKeyEx", [HKEY, text, DWORD, DWORD, PHKEY])
        self._open_current_user = self._bind(advapi, "RegOpenCurrentUser", [DWORD, PHKEY], suffixed=False)
        self._close_key = self._bind(advapi, "RegCloseKey", [HKEY], suffixed=False)
        self._query_info_key = self._bind(
            advapi, "RegQueryInfoKey",
            [HKEY, PVOID, LPDWORD, LPDWORD, LPDWORD, LPDWORD, LPDWORD,
             LPDWORD, LPDWORD, LPDWORD, LPDWORD, ctypes.POINTER(wintypes.FILETIME)])
        self._enum_key = self._bind(
            advapi, "RegEnumKeyEx",
            [HKEY, DWORD, PVOID, LPDWORD, LPDWORD, PVOID, LPDWORD, ctypes.POINTER(wintypes.FILETIME)])
        self._enum_value = self._bind(
            advapi, "RegEnumValue",
            [HKEY, DWORD, PVOID, LPDWORD, LPDWORD, LPDWORD, PVOID, LPDWORD])
        self._set_value = self._bind(advapi, "RegSetValueEx", [HKEY, text, DWORD, DWORD, PVOID, DWORD])
        self._get_value = self._bind(advapi, "RegGetValue", [HKEY, text, text, DWORD, LPDWORD, PVOID, LPDWORD])
        self._delete_key = self._bind(advapi, "RegDeleteKeyEx", [HKEY, text, DWORD, DWORD])
        self._delete_tree = self._bind(advapi, "RegDeleteTree", [HKEY, text])
        self._delete_value = self._bind(advapi, "RegDeleteValue", [HKEY, text])
        self._expand = self._bind(kernel, "ExpandEnvironmentStrings", [text, PVOID, DWORD], restype=DWORD)
        self._format_message = self._bind(
            kernel, "FormatMessage", [DWORD, PVOID, DWORD, DWORD, PVOID, DWORD, PVOID], restype=DWORD)
        self._local_free = self._bind(kernel, "LocalFree", [PVOID], restype=PVOID, suffixed=False)

    def _text(self, value: Optional[str]):
        if value is None:
            return None
        if self.width is CharWidth.WIDE:
            return value
        return self.codec.encode(value)

    def create_key(self, hkey, subkey, rights):
        result = HKEY()
        disposition = DWORD()
        status = self._create_key(
            hkey, self._text(subkey), 0, None, 0, rights, None, ctypes.byref(result), ctypes.byref(disposition))
        return status, result.value or 0, disposition.value

    def open_key(self, hkey, subkey, rights):
        result = HKEY()
        status = self._open_key(hkey, self._text(subkey), 0, rights, ctypes.byref(result))
        return status, result.value or 0

    def open_current_user(self, rights):
        result = HKEY()
        status = self._open_current_user(rights, ctypes.byref(result))
        return status, result.value or 0

    def close_key(self, hkey):
        return self._close_key(hkey)

    def query_info_key(self, hkey):
        subkeys, max_subkey_len = DWORD(), DWORD()
        values, max_value_name_len, max_value_len = DWORD(), DWORD(), DWORD()
        last_write = wintypes.FILETIME()
        status = self._query_info_key(
            hkey, None, None, None, ctypes.byref(subkeys), ctypes.byref(max_subkey_len), None,
            ctypes.byref(values), ctypes.byref(max_value_name_len), ctypes.byref(max_value_len),
            None, ctypes.byref(last_write))
        if status != ERROR_SUCCESS:
            return status, None
        return status, KeyInfo(
            subkeys=subkeys.value,
            max_subkey_len=max_subkey_len.value,
            values=values.value,
            max_value_name_len=max_value_name_len.value,
            max_value_len=max_value_len.value,
            last_write_time=(last_write.dwHighDateTime << 32) | last_write.dwLowDateTime,
        )

    def enum_key(self, hkey, index, buffer):
        chars = DWORD(len(buffer) // self.codec.unit)
        status = self._enum_key(hkey, index, _as_array(buffer), ctypes.byref(chars), None, None, None, None)
        return status, chars.value

    def enum_value(self, hkey, index, buffer):
        chars = DWORD(len(buffer) // self.codec.unit)
        status = self._enum_value(hkey, index, _as_array(buffer), ctypes.byref(chars), None, None, None, None)
        return status, chars.value

    def set_value(self, hkey, name, kind, data):
        return self._set_value(hkey, self._text(name), 0, kind, bytes(data), len(data))

    def get_value(self, hkey, subkey, name, flags, buffer):
        kind = DWORD()
        size = DWORD(len(buffer))
        status = self._get_value(
            hkey, self._text(subkey), self._text(name), flags, ctypes.byref(kind), _as_array(buffer), ctypes.byref(size))
        return status, kind.value, size.value

    def delete_key(self, hkey, subkey, rights):
        return self._delete_key(hkey, self._text(subkey), rights, 0)

    def delete_tree(self, hkey, subkey):
        return self._delete_tree(hkey, self._text(subkey))

    def delete_value(self, hkey, name):
        return self._delete_value(hkey, self._text(name))

    def expand_environment_strings(self, source, buffer):
        return self._expand(self._text(source), _as_array(buffer), len(buffer) // self.codec.unit)

    def format_message(self, status, language=0):
        if self.width is CharWidth.WIDE:
            message = wintypes.LPWSTR()
        else:
            message = wintypes.LPSTR()
        written = self._format_message(_FORMAT_FLAGS, None, status, language, ctypes.byref(message), 0, None)
        if not written:
            return None
        try:
            text = message.value
        finally:
            self._local_free(ctypes.cast(message, PVOID))
        if isinstance(text, bytes):
            text = text.decode(self.codec.narrow_encoding, "replace")
        return text
