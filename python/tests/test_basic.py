"""
Basic tests for the reg_access package.

These tests verify the public surface of the package.
"""

import pytest
import reg_access


def test_version():
    """Test that version is available."""
    assert hasattr(reg_access, '__version__')
    assert isinstance(reg_access.__version__, str)
    assert len(reg_access.__version__) > 0


def test_classes_available():
    """Test that all expected classes are available."""
    assert hasattr(reg_access, 'Registry')
    assert hasattr(reg_access, 'KeyHandle')
    assert hasattr(reg_access, 'RegistryConfig')
    assert hasattr(reg_access, 'MemoryEngine')
    assert hasattr(reg_access, 'RootKey')
    assert hasattr(reg_access, 'ValueKind')
    assert hasattr(reg_access, 'AccessRights')
    assert hasattr(reg_access, 'RegistryError')


def test_all_exports_resolve():
    """Test that every name in __all__ is importable."""
    for name in reg_access.__all__:
        assert hasattr(reg_access, name), name


def test_open_missing_key(registry):
    """Test that opening a missing key raises an error."""
    with pytest.raises(reg_access.RegistryKeyNotFoundError):
        registry.open("HKEY_LOCAL_MACHINE\\Software\\does_not_exist")


def test_open_invalid_path(registry):
    """Test that opening a path without a root separator raises an error."""
    with pytest.raises(reg_access.InvalidPathError):
        registry.open("nonexistent_path")


def test_error_hierarchy():
    """Test that every error derives from RegistryError."""
    for name in ("InvalidPathError", "UnsupportedRootError", "KeyAlreadyExistsError",
                 "HandleClosedError", "NativeOperationError", "ConfigError"):
        assert issubclass(getattr(reg_access, name), reg_access.RegistryError)


def test_round_trip_smoke(registry, test_key):
    """Test writing and reading back one value of every kind."""
    test_key.write_string("strkey", "strval")
    test_key.write_binary("hello", bytes([0xFF, 0x00]))
    test_key.write_int32("123x86", 12341234)
    test_key.write_int64("123x64", 1234123412341234)
    test_key.write_multi_string("hellomult", ["sup!", "Ϋ世界", "世ϵ界", "", None])

    assert test_key.read_string("strkey") == "strval"
    assert test_key.read_binary("hello") == b"\xff\x00"
    assert test_key.read_int32("123x86") == 12341234
    assert test_key.read_int64("123x64") == 1234123412341234
    assert test_key.read_multi_string("hellomult") == ["sup!", "Ϋ世界", "世ϵ界"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
