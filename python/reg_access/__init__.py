"""
Windows Registry Access - Python Bindings

Typed access to the host registry: size-negotiated value reads, multi-string
marshalling, path resolution and structured errors for every native status.
"""

__version__ = "0.1.0"

from .codec import TextCodec
from .config import RegistryConfig
from .constants import AccessRights, CharWidth, RootKey, ValueKind
from .engine import KeyInfo, RegistryEngine
from .errors import (
    ConfigError,
    HandleClosedError,
    InvalidPathError,
    KeyAlreadyExistsError,
    NativeOperationError,
    RegistryError,
    RegistryKeyNotFoundError,
    RegistryPermissionError,
    RegistryTypeMismatchError,
    UnsupportedRootError,
)
from .keys import KeyHandle
from .memory import MemoryEngine
from .paths import parse_reg_path
from .registry import (
    Registry,
    create_key,
    create_or_open_key,
    expand_env_string,
    get_default_registry,
    open_key,
    set_default_registry,
)

__all__ = [
    "AccessRights",
    "CharWidth",
    "ConfigError",
    "HandleClosedError",
    "InvalidPathError",
    "KeyAlreadyExistsError",
    "KeyHandle",
    "KeyInfo",
    "MemoryEngine",
    "NativeOperationError",
    "Registry",
    "RegistryConfig",
    "RegistryEngine",
    "RegistryError",
    "RegistryKeyNotFoundError",
    "RegistryPermissionError",
    "RegistryTypeMismatchError",
    "RootKey",
    "TextCodec",
    "UnsupportedRootError",
    "ValueKind",
    "create_key",
    "create_or_open_key",
    "expand_env_string",
    "get_default_registry",
    "open_key",
    "parse_reg_path",
    "set_default_registry",
    "__version__",
]
