"""Tests for registry path parsing."""

import pytest

from reg_access import InvalidPathError, RootKey, UnsupportedRootError
from reg_access.paths import parse_reg_path, predefined_root, split_reg_path


@pytest.mark.parametrize("root", list(RootKey))
def test_every_root_resolves(root):
    """Test that each predefined root name maps to its root key."""
    assert parse_reg_path(f"{root.name}\\Software\\Vendor") == (root, "Software\\Vendor")


def test_split_on_first_backslash_only():
    """Test that only the first backslash separates root from subkey."""
    assert split_reg_path("HKEY_USERS\\a\\b\\c") == ("HKEY_USERS", "a\\b\\c")


def test_empty_subkey():
    """Test that a trailing separator yields an empty subkey path."""
    assert parse_reg_path("HKEY_LOCAL_MACHINE\\") == (RootKey.HKEY_LOCAL_MACHINE, "")


def test_missing_separator():
    """Test that a path without backslash is rejected."""
    assert split_reg_path("HKEY_LOCAL_MACHINE") is None
    with pytest.raises(InvalidPathError):
        parse_reg_path("HKEY_LOCAL_MACHINE")
    with pytest.raises(InvalidPathError):
        parse_reg_path("")


def test_forward_slash_is_not_a_separator():
    """Test that forward slashes do not split a path."""
    with pytest.raises(InvalidPathError):
        parse_reg_path("HKEY_LOCAL_MACHINE/Software")


@pytest.mark.parametrize("path", [
    "HKLM\\Software",
    "hkey_local_machine\\Software",
    "HKEY_LOCAL_MACHINE \\Software",
    "\\Software",
])
def test_unsupported_root(path):
    """Test that root names must match exactly, including case."""
    with pytest.raises(UnsupportedRootError):
        parse_reg_path(path)


def test_predefined_root_lookup():
    """Test looking up roots by name."""
    assert predefined_root("HKEY_DYN_DATA") is RootKey.HKEY_DYN_DATA
    assert predefined_root("HKEY_NOPE") is None


def test_errors_are_value_errors():
    """Test that path errors are also ValueErrors."""
    with pytest.raises(ValueError):
        parse_reg_path("nope")
