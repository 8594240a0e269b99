"""
Registry access configuration.

Settings come from programmatic defaults, overridden by environment
variables through :meth:`RegistryConfig.from_env`.
"""

import logging
import os
import sys
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

from .codec import TextCodec
from .constants import AccessRights, CharWidth
from .errors import ConfigError

logger = logging.getLogger(__name__)

ENV_PREFIX = "REG_ACCESS_"
BACKENDS = ("native", "memory")


def _default_narrow_encoding() -> str:
    return "mbcs" if sys.platform == "win32" else "utf-8"


def _default_backend() -> str:
    return "native" if sys.platform == "win32" else "memory"


@dataclass(frozen=True)
class RegistryConfig:
    """Settings shared by one :class:`~reg_access.registry.Registry`.

    Attributes:
        char_width: Width of text units exchanged with the engine.
        narrow_encoding: Code page for NARROW text.
        initial_buffer_size: First buffer size for size-negotiated reads,
            in bytes for values and in characters for expansion.
        default_rights: Rights used when an operation is given none.
        message_language: Language id for host error messages; 0 is the
            host default, 1033 forces English.
        backend: ``"native"`` or ``"memory"``.
    """

    char_width: CharWidth = CharWidth.WIDE
    narrow_encoding: str = field(default_factory=_default_narrow_encoding)
    initial_buffer_size: int = 32
    default_rights: AccessRights = AccessRights.READ
    message_language: int = 0
    backend: str = field(default_factory=_default_backend)

    def __post_init__(self):
        if self.initial_buffer_size <= 0:
            raise ConfigError(f"initial_buffer_size must be positive, got {self.initial_buffer_size}")
        if self.backend not in BACKENDS:
            raise ConfigError(f"unknown backend {self.backend!r}; expected one of {BACKENDS}")

    @property
    def codec(self) -> TextCodec:
        return TextCodec(self.char_width, self.narrow_encoding)

    def with_overrides(self, **changes) -> "RegistryConfig":
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RegistryConfig":
        """Build a config from ``REG_ACCESS_*`` environment variables.

        Raises:
            ConfigError: If a variable holds a malformed value.
        """
        env = os.environ if environ is None else environ
        changes = {}

        width = env.get(ENV_PREFIX + "CHAR_WIDTH")
        if width:
            try:
                changes["char_width"] = CharWidth[width.strip().upper()]
            except KeyError:
                raise ConfigError(f"invalid {ENV_PREFIX}CHAR_WIDTH: {width!r}") from None

        encoding = env.get(ENV_PREFIX + "NARROW_ENCODING")
        if encoding:
            changes["narrow_encoding"] = encoding.strip()

        for name, key in (("INITIAL_BUFFER", "initial_buffer_size"), ("MESSAGE_LANGUAGE", "message_language")):
            raw = env.get(ENV_PREFIX + name)
            if raw:
                try:
                    changes[key] = int(raw, 0)
                except ValueError:
                    raise ConfigError(f"invalid {ENV_PREFIX}{name}: {raw!r}") from None

        backend = env.get(ENV_PREFIX + "BACKEND")
        if backend:
            changes["backend"] = backend.strip().lower()

        if changes:
            logger.debug("Registry config overrides from environment: %s", changes)
        return cls(**changes)
