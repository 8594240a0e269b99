"""
Registry sessions.

A :class:`Registry` binds one engine to one configuration and hands out
:class:`~reg_access.keys.KeyHandle` objects. Keys can be addressed by a
parent handle and subkey, by a :class:`~reg_access.constants.RootKey` and
subkey, or by a full ``ROOT\\sub\\path`` string.
"""

import logging
import threading
from typing import Optional, Tuple, Union

from .config import RegistryConfig
from .constants import REG_CREATED_NEW_KEY, RootKey
from .engine import RegistryEngine
from .errors import KeyAlreadyExistsError, RegistryError, UnsupportedRootError, check_status
from .keys import KeyHandle
from .paths import parse_reg_path, predefined_root
from .reader import ValueBuffer

logger = logging.getLogger(__name__)

KeyLike = Union[KeyHandle, RootKey, str]


def build_engine(config: RegistryConfig) -> RegistryEngine:
    """Construct the engine selected by ``config.backend``."""
    if config.backend == "memory":
        from .memory import MemoryEngine
        return MemoryEngine(config.char_width, config.narrow_encoding)
    from .advapi import AdvapiEngine
    return AdvapiEngine(config.char_width, config.narrow_encoding)


class Registry:
    """Access to one registry engine.

    Args:
        engine: Engine to use; built from ``config.backend`` when omitted.
        config: Settings; :class:`RegistryConfig` defaults when omitted.

    Raises:
        RegistryError: If the engine's width differs from the config's.
    """

    def __init__(self, engine: Optional[RegistryEngine] = None, config: Optional[RegistryConfig] = None):
        self.config = config if config is not None else RegistryConfig()
        self.engine = engine if engine is not None else build_engine(self.config)
        if self.engine.width is not self.config.char_width:
            raise RegistryError(
                f"engine width {self.engine.width.name} does not match configured {self.config.char_width.name}")

    def check(self, status: int) -> None:
        check_status(status, self.engine.format_message, self.config.message_language)

    def root(self, root: Union[RootKey, str]) -> KeyHandle:
        """Handle of a predefined root. It is not owned and never closed.

        Raises:
            UnsupportedRootError: If ``root`` names no predefined root.
        """
        if not isinstance(root, RootKey):
            name = root
            root = predefined_root(name)
            if root is None:
                raise UnsupportedRootError(f"unsupported path root: {name!r}")
        return KeyHandle(self, int(root), self.config.default_rights, root.name, owned=False)

    def _resolve(self, key: KeyLike, subkey: Optional[str]) -> Tuple[int, str, str]:
        """Return ``(parent hkey, subkey, display path)``."""
        if isinstance(key, KeyHandle):
            parent, base = key.hkey, key.path
        elif isinstance(key, RootKey):
            parent, base = int(key), key.name
        else:
            root, rest = parse_reg_path(key)
            parent, base = int(root), root.name
            subkey = f"{rest}\\{subkey}" if subkey and rest else (subkey or rest)
        subkey = subkey or ""
        path = f"{base}\\{subkey}" if subkey else base
        return parent, subkey, path

    def _rights(self, rights: Optional[int]) -> int:
        return int(self.config.default_rights if rights is None else rights)

    def _create(self, key: KeyLike, subkey: Optional[str], rights: Optional[int]) -> Tuple[KeyHandle, bool]:
        parent, subkey, path = self._resolve(key, subkey)
        rights = self._rights(rights)
        status, hkey, disposition = self.engine.create_key(parent, subkey, rights)
        self.check(status)
        created = disposition == REG_CREATED_NEW_KEY
        logger.debug("%s key %r", "Created" if created else "Opened existing", path)
        return KeyHandle(self, hkey, rights, path), created

    def create(self, key: KeyLike, subkey: Optional[str] = None, rights: Optional[int] = None) -> KeyHandle:
        """Create a new key.

        Args:
            key: Parent handle, root key, or a full path.
            subkey: Subkey below ``key``; omit when ``key`` is a full path.
            rights: Access rights of the returned handle.

        Returns:
            An owned handle to the new key.

        Raises:
            KeyAlreadyExistsError: If the key already existed.
            NativeOperationError: If the engine refuses.
        """
        handle, created = self._create(key, subkey, rights)
        if not created:
            handle.close()
            raise KeyAlreadyExistsError(f"key already exists: {handle.path!r}")
        return handle

    def create_or_open(self, key: KeyLike, subkey: Optional[str] = None, rights: Optional[int] = None) -> KeyHandle:
        """Like :meth:`create`, but an existing key is opened instead."""
        return self._create(key, subkey, rights)[0]

    def open(self, key: KeyLike, subkey: Optional[str] = None, rights: Optional[int] = None) -> KeyHandle:
        """Open an existing key.

        Raises:
            RegistryKeyNotFoundError: If the key does not exist.
            NativeOperationError: If the parent handle is invalid.
        """
        parent, subkey, path = self._resolve(key, subkey)
        rights = self._rights(rights)
        status, hkey = self.engine.open_key(parent, subkey, rights)
        self.check(status)
        logger.debug("Opened key %r", path)
        return KeyHandle(self, hkey, rights, path)

    def open_current_user(self, rights: Optional[int] = None) -> KeyHandle:
        """Open ``HKEY_CURRENT_USER`` of the user the calling thread impersonates."""
        rights = self._rights(rights)
        status, hkey = self.engine.open_current_user(rights)
        self.check(status)
        return KeyHandle(self, hkey, rights, RootKey.HKEY_CURRENT_USER.name)

    def close(self, handle: KeyHandle) -> None:
        handle.close()

    def close_many(self, *handles: KeyHandle) -> None:
        """Close every handle in order.

        A failing close does not stop the others; the first error is raised
        once all handles were visited.
        """
        first_error = None
        for handle in handles:
            try:
                handle.close()
            except RegistryError as e:
                logger.debug("Closing %r failed: %s", handle, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def expand_env_string(self, source: str) -> Optional[str]:
        """Substitute ``%NAME%`` references with environment variables.

        Returns:
            The expanded text, or None if the host could not expand it.
        """
        codec = self.config.codec
        chars = self.config.initial_buffer_size
        with ValueBuffer(chars * codec.unit) as buffer:
            required = self.engine.expand_environment_strings(source, buffer.data)
            if required > chars:
                logger.debug("Expansion of %r needs %d characters, retrying", source, required)
                chars = required
                buffer.resize(chars * codec.unit)
                required = self.engine.expand_environment_strings(source, buffer.data)
            if required == 0 or required > chars:
                logger.debug("Host could not expand %r", source)
                return None
            return codec.decode_terminated(buffer.data[:required * codec.unit])


_default_registry: Optional[Registry] = None
_default_lock = threading.Lock()


def get_default_registry() -> Registry:
    """The process-wide registry, configured from the environment on first use."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            _default_registry = Registry(config=RegistryConfig.from_env())
        return _default_registry


def set_default_registry(registry: Optional[Registry]) -> None:
    """Replace the process-wide registry; None rebuilds it on next use."""
    global _default_registry
    with _default_lock:
        _default_registry = registry


def open_key(key: KeyLike, subkey: Optional[str] = None, rights: Optional[int] = None) -> KeyHandle:
    return get_default_registry().open(key, subkey, rights)


def create_key(key: KeyLike, subkey: Optional[str] = None, rights: Optional[int] = None) -> KeyHandle:
    return get_default_registry().create(key, subkey, rights)


def create_or_open_key(key: KeyLike, subkey: Optional[str] = None, rights: Optional[int] = None) -> KeyHandle:
    return get_default_registry().create_or_open(key, subkey, rights)


def expand_env_string(source: str) -> Optional[str]:
    return get_default_registry().expand_env_string(source)
