"""
Registry error types and native status translation.

Every non-success status returned by a registry primitive passes through
:func:`translate_status`, which always raises.
"""

import logging
from typing import Callable, Optional

from .constants import (
    ERROR_ACCESS_DENIED,
    ERROR_FILE_NOT_FOUND,
    ERROR_SUCCESS,
    ERROR_UNSUPPORTED_TYPE,
)

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "unknown error"


class RegistryError(Exception):
    """Base exception for all registry errors in this package."""


class InvalidPathError(RegistryError, ValueError):
    """Raised when a registry path has no root separator."""


class UnsupportedRootError(RegistryError, ValueError):
    """Raised when a path root is not one of the predefined root keys."""


class KeyAlreadyExistsError(RegistryError):
    """Raised by a strict create when the key was already present."""


class HandleClosedError(RegistryError):
    """Raised when a key handle is used after it was closed."""


class ConfigError(RegistryError, ValueError):
    """Raised for malformed configuration values."""


class NativeOperationError(RegistryError):
    """A registry primitive reported a failure status.

    Attributes:
        status: The native status code.
        message: The host's message for ``status``, or a generic fallback.
    """

    def __init__(self, message: str, status: int):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return f"{self.message} (status {self.status})"


class RegistryKeyNotFoundError(NativeOperationError, LookupError):
    """The key or value named by an operation does not exist."""


class RegistryPermissionError(NativeOperationError, PermissionError):
    """The handle lacks the rights required, or the engine refused."""


class RegistryTypeMismatchError(NativeOperationError, TypeError):
    """The stored value kind is not the kind that was requested."""


# Not exhaustive: statuses missing here map to NativeOperationError.
_ERROR_MAP = {
    ERROR_FILE_NOT_FOUND: RegistryKeyNotFoundError,
    ERROR_ACCESS_DENIED: RegistryPermissionError,
    ERROR_UNSUPPORTED_TYPE: RegistryTypeMismatchError,
}

MessageFormatter = Callable[[int, int], Optional[str]]


def resolve_message(status: int, formatter: Optional[MessageFormatter], language: int = 0) -> str:
    """Look up the host's message for ``status``.

    Lookup failures are not propagated; the generic fallback is returned
    instead.
    """
    if formatter is None:
        return UNKNOWN_ERROR_MESSAGE
    try:
        message = formatter(status, language)
    except (OSError, ValueError) as e:
        logger.debug("Message lookup for status %s failed: %s", status, e)
        return UNKNOWN_ERROR_MESSAGE
    if not message:
        return UNKNOWN_ERROR_MESSAGE
    return message.strip()


def translate_status(status: int, formatter: Optional[MessageFormatter] = None, language: int = 0) -> None:
    """Raise the structured error for a failed native status.

    Args:
        status: Status returned by a registry primitive. Must not be success.
        formatter: Callable mapping ``(status, language)`` to a message.
        language: Language id handed to ``formatter``; 0 is the host default.

    Raises:
        NativeOperationError or subclass: Always.
    """
    if status == ERROR_SUCCESS:
        # Callers only translate failures; reaching here is a caller bug.
        raise ValueError("cannot translate a success status")
    message = resolve_message(status, formatter, language)
    error_type = _ERROR_MAP.get(status, NativeOperationError)
    logger.debug("Mapping status %s (%r) -> %s", status, message, error_type.__name__)
    raise error_type(message, status)


def check_status(status: int, formatter: Optional[MessageFormatter] = None, language: int = 0) -> None:
    """Do nothing on success, translate and raise otherwise."""
    if status != ERROR_SUCCESS:
        translate_status(status, formatter, language)
