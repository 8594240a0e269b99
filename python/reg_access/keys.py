"""Key handles."""

import logging
from typing import TYPE_CHECKING, Optional

from .constants import AccessRights
from .errors import HandleClosedError
from .values import ValueAccessors

if TYPE_CHECKING:
    from .registry import Registry

logger = logging.getLogger(__name__)


class KeyHandle(ValueAccessors):
    """An open registry key.

    A handle is owned by whoever opened it and must be closed exactly
    once; use it as a context manager to close it on exit. Handles of
    predefined roots are not owned and closing them does nothing.

    Attributes:
        registry: The registry session the handle belongs to.
        rights: Access rights the key was opened with.
        path: Path the key was reached by, for messages.
    """

    def __init__(self, registry: "Registry", hkey: int, rights: int, path: str, owned: bool = True):
        self.registry = registry
        self.rights = AccessRights(rights)
        self.path = path
        self.owned = owned
        self._hkey: Optional[int] = hkey

    @property
    def hkey(self) -> int:
        """The raw native handle.

        Raises:
            HandleClosedError: If the handle was closed.
        """
        if self._hkey is None:
            raise HandleClosedError(f"key handle for {self.path!r} is closed")
        return self._hkey

    @property
    def closed(self) -> bool:
        return self._hkey is None

    def close(self) -> None:
        """Release the handle. Later calls do nothing."""
        if self._hkey is None or not self.owned:
            return
        hkey, self._hkey = self._hkey, None
        logger.debug("Closing key %r", self.path)
        self._check(self.registry.engine.close_key(hkey))

    def create(self, subkey: str, rights: Optional[int] = None) -> "KeyHandle":
        """Create ``subkey`` below this key; see :meth:`Registry.create`."""
        return self.registry.create(self, subkey, rights)

    def create_or_open(self, subkey: str, rights: Optional[int] = None) -> "KeyHandle":
        return self.registry.create_or_open(self, subkey, rights)

    def open(self, subkey: str = "", rights: Optional[int] = None) -> "KeyHandle":
        return self.registry.open(self, subkey, rights)

    def __enter__(self) -> "KeyHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<KeyHandle {self.path!r} {state}>"
