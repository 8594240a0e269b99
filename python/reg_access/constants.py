"""
Host registry constants.

Predefined roots, access rights, value kinds and the native status codes
returned by every registry primitive.
"""

import enum


# Native status codes
ERROR_SUCCESS = 0
ERROR_FILE_NOT_FOUND = 2
ERROR_ACCESS_DENIED = 5
ERROR_INVALID_HANDLE = 6
ERROR_INVALID_PARAMETER = 87
ERROR_MORE_DATA = 234
ERROR_NO_MORE_ITEMS = 259
ERROR_KEY_DELETED = 1018
ERROR_UNSUPPORTED_TYPE = 1630

# Creation disposition reported by the create primitive
REG_CREATED_NEW_KEY = 1
REG_OPENED_EXISTING_KEY = 2

# Value query flags
RRF_RT_REG_NONE = 0x00000001
RRF_RT_REG_SZ = 0x00000002
RRF_RT_REG_EXPAND_SZ = 0x00000004
RRF_RT_REG_BINARY = 0x00000008
RRF_RT_REG_DWORD = 0x00000010
RRF_RT_REG_MULTI_SZ = 0x00000020
RRF_RT_REG_QWORD = 0x00000040
RRF_RT_ANY = 0x0000FFFF
RRF_NOEXPAND = 0x10000000

# Longest string ExpandEnvironmentStrings accepts, in characters.
MAX_EXPAND_CHARS = 32767


class RootKey(enum.IntEnum):
    """Predefined root keys. Member names are the path root names."""

    HKEY_CLASSES_ROOT = 0x80000000
    HKEY_CURRENT_USER = 0x80000001
    HKEY_LOCAL_MACHINE = 0x80000002
    HKEY_USERS = 0x80000003
    HKEY_PERFORMANCE_DATA = 0x80000004
    HKEY_CURRENT_CONFIG = 0x80000005
    HKEY_DYN_DATA = 0x80000006


class AccessRights(enum.IntFlag):
    """Key access mask. Forwarded to the engine untouched."""

    QUERY_VALUE = 0x0001
    SET_VALUE = 0x0002
    CREATE_SUB_KEY = 0x0004
    ENUMERATE_SUB_KEYS = 0x0008
    NOTIFY = 0x0010
    CREATE_LINK = 0x0020
    WOW64_64KEY = 0x0100
    WOW64_32KEY = 0x0200
    DELETE = 0x00010000
    READ_CONTROL = 0x00020000
    WRITE_DAC = 0x00040000
    WRITE_OWNER = 0x00080000

    READ = READ_CONTROL | QUERY_VALUE | ENUMERATE_SUB_KEYS | NOTIFY
    WRITE = READ_CONTROL | SET_VALUE | CREATE_SUB_KEY
    EXECUTE = READ
    ALL_ACCESS = (
        DELETE | READ_CONTROL | WRITE_DAC | WRITE_OWNER | QUERY_VALUE
        | SET_VALUE | CREATE_SUB_KEY | ENUMERATE_SUB_KEYS | NOTIFY | CREATE_LINK
    )


_RESTRICT_FLAGS = {
    1: RRF_RT_REG_SZ,
    2: RRF_RT_REG_EXPAND_SZ,
    3: RRF_RT_REG_BINARY,
    4: RRF_RT_REG_DWORD,
    7: RRF_RT_REG_MULTI_SZ,
    11: RRF_RT_REG_QWORD,
}


class ValueKind(enum.IntEnum):
    """Registry value types handled by this package."""

    REG_SZ = 1
    REG_EXPAND_SZ = 2
    REG_BINARY = 3
    REG_DWORD = 4
    REG_MULTI_SZ = 7
    REG_QWORD = 11

    @property
    def restrict_flag(self) -> int:
        """The RRF_RT_* flag that restricts a query to this kind."""
        return _RESTRICT_FLAGS[self.value]

    @classmethod
    def from_restrict_flags(cls, flags: int) -> frozenset:
        """All kinds accepted by a combination of RRF_RT_* flags."""
        return frozenset(kind for kind in cls if flags & kind.restrict_flag)


class CharWidth(enum.Enum):
    """Character width used for text exchanged with the engine."""

    WIDE = 2
    NARROW = 1

    @property
    def unit(self) -> int:
        """Size of one code unit in bytes."""
        return self.value

    @property
    def terminator(self) -> bytes:
        return b"\x00" * self.value

    @property
    def suffix(self) -> str:
        """Entry-point suffix of the host API for this width."""
        return "W" if self is CharWidth.WIDE else "A"
