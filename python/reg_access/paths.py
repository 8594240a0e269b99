"""Registry path parsing."""

from typing import Optional, Tuple

from .constants import RootKey
from .errors import InvalidPathError, UnsupportedRootError


def split_reg_path(path: str) -> Optional[Tuple[str, str]]:
    """Split ``path`` at its first backslash.

    Returns:
        ``(root, rest)``, or None when the path contains no backslash.
    """
    root, sep, rest = path.partition("\\")
    if not sep:
        return None
    return root, rest


def predefined_root(name: str) -> Optional[RootKey]:
    """Return the root key whose name is exactly ``name``, or None."""
    return RootKey.__members__.get(name)


def parse_reg_path(path: str) -> Tuple[RootKey, str]:
    """Resolve ``ROOT\\sub\\path`` into its root key and subkey path.

    The subkey path is returned unchanged and may be empty.

    Raises:
        InvalidPathError: If ``path`` has no backslash.
        UnsupportedRootError: If the root name is not a predefined root.
    """
    parts = split_reg_path(path)
    if parts is None:
        raise InvalidPathError(f"invalid path: {path!r}")
    root_name, subkey = parts
    root = predefined_root(root_name)
    if root is None:
        raise UnsupportedRootError(f"unsupported path root: {root_name!r}")
    return root, subkey
