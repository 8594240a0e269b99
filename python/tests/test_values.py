"""Tests for typed value access and key queries."""

import pytest

from reg_access import (
    AccessRights,
    HandleClosedError,
    NativeOperationError,
    RegistryKeyNotFoundError,
    RegistryPermissionError,
    RegistryTypeMismatchError,
)


def test_string_round_trip(test_key):
    """Test REG_SZ write and read."""
    test_key.write_string("hello", "world")
    assert test_key.read_string("hello") == "world"


def test_long_string_round_trip(test_key):
    """Test a string longer than the first read buffer."""
    text = "C:\\dir\\myfile" * 20
    test_key.write_string("path", text)
    assert test_key.read_string("path") == text


def test_expand_string_is_read_unexpanded(test_key, monkeypatch):
    """Test that REG_EXPAND_SZ reads back the literal reference."""
    monkeypatch.setenv("PATH", "/usr/bin")
    test_key.write_expand_string("helloexpand", "%PATH%")
    assert test_key.read_expand_string("helloexpand") == "%PATH%"


def test_multi_string_round_trip(test_key):
    """Test REG_MULTI_SZ write and read, dropping empty entries."""
    test_key.write_multi_string("hellomult", ["sup!", "héllo", "", None])
    assert test_key.read_multi_string("hellomult") == ["sup!", "héllo"]


def test_empty_multi_string(test_key):
    """Test a multi-string with no representable entries."""
    test_key.write_multi_string("empty", ["", None])
    assert test_key.read_multi_string("empty") == []


def test_int32_round_trip(test_key):
    """Test REG_DWORD write and read."""
    test_key.write_int32("123x86", 12341234)
    assert test_key.read_int32("123x86") == 12341234


def test_int32_sign(test_key):
    """Test negative and unsigned DWORD values."""
    test_key.write_int32("neg", -2)
    assert test_key.read_int32("neg") == -2
    test_key.write_int32("max", 0xFFFFFFFF)
    assert test_key.read_int32("max") == -1
    assert test_key.read_int32("max", signed=False) == 0xFFFFFFFF


def test_int64_round_trip(test_key):
    """Test REG_QWORD write and read."""
    test_key.write_int64("123x64", 1234123412341234)
    assert test_key.read_int64("123x64") == 1234123412341234


@pytest.mark.parametrize("writer, value", [
    ("write_int32", 1 << 32),
    ("write_int32", -(1 << 31) - 1),
    ("write_int64", 1 << 64),
])
def test_integer_out_of_range(test_key, writer, value):
    """Test that integers wider than the kind are rejected."""
    with pytest.raises(ValueError):
        getattr(test_key, writer)("n", value)


def test_binary_round_trip(test_key):
    """Test REG_BINARY write and read, including an empty value."""
    test_key.write_binary("hello", bytes([0xFF, 0x00]))
    assert test_key.read_binary("hello") == b"\xff\x00"
    test_key.write_binary("none", b"")
    assert test_key.read_binary("none") == b""


def test_default_value(test_key):
    """Test that None addresses the default value."""
    test_key.write_string(None, "default")
    assert test_key.read_string(None) == "default"
    assert test_key.read_string("") == "default"


def test_kind_mismatch(test_key):
    """Test that reading a value as another kind fails."""
    test_key.write_int32("number", 7)
    with pytest.raises(RegistryTypeMismatchError):
        test_key.read_string("number")
    test_key.write_string("text", "7")
    with pytest.raises(RegistryTypeMismatchError):
        test_key.read_int32("text")
    with pytest.raises(RegistryTypeMismatchError):
        test_key.read_expand_string("text")


def test_missing_value(test_key):
    """Test reading a value that does not exist."""
    with pytest.raises(RegistryKeyNotFoundError):
        test_key.read_binary("nothing")


def test_write_needs_set_rights(registry, test_key):
    """Test that a read-only handle cannot write."""
    with registry.open(test_key, rights=AccessRights.READ) as readonly:
        with pytest.raises(RegistryPermissionError):
            readonly.write_string("x", "y")


def test_delete_value(test_key):
    """Test removing a value."""
    test_key.write_string("gone", "soon")
    test_key.delete_value("gone")
    with pytest.raises(RegistryKeyNotFoundError):
        test_key.read_string("gone")
    with pytest.raises(RegistryKeyNotFoundError):
        test_key.delete_value("gone")


def test_counts_of_fresh_key(registry, test_key):
    """Test that a newly created key has no subkeys and no values."""
    with registry.create(test_key, "test_sk", AccessRights.ALL_ACCESS) as child:
        assert child.count_subkeys() == 0
        assert child.count_values() == 0
    test_key.del_subkey("test_sk")


def test_counts(test_key):
    """Test counting subkeys and values."""
    test_key.write_string("a", "1")
    test_key.write_int32("b", 2)
    test_key.create("child", AccessRights.ALL_ACCESS).close()
    assert test_key.count_values() == 2
    assert test_key.count_subkeys() == 1


def test_counts_need_query_rights(registry, test_key):
    """Test that counting requires the query right."""
    with registry.open(test_key, rights=AccessRights.SET_VALUE) as handle:
        with pytest.raises(RegistryPermissionError):
            handle.count_values()


def test_query_info(test_key):
    """Test the aggregate key metadata."""
    test_key.write_string("name", "value")
    test_key.create("longer_child", AccessRights.ALL_ACCESS).close()
    info = test_key.query_info()
    assert info.subkeys == 1
    assert info.values == 1
    assert info.max_subkey_len == len("longer_child")
    assert info.max_value_name_len == len("name")
    assert info.last_write_time > 0
    assert test_key.last_write_time() >= info.last_write_time


def test_enum_subkeys(test_key):
    """Test that children are yielded once each in engine order."""
    test_key.create("A", AccessRights.ALL_ACCESS).close()
    test_key.create("B", AccessRights.ALL_ACCESS).close()
    names = test_key.enum_subkeys()
    assert next(names) == "A"
    assert next(names) == "B"
    with pytest.raises(StopIteration):
        next(names)
    with pytest.raises(StopIteration):
        next(names)


def test_enum_subkeys_order_not_sorted(test_key):
    """Test that enumeration keeps the engine's order."""
    for name in ("zeta", "Alpha", "mid"):
        test_key.create(name, AccessRights.ALL_ACCESS).close()
    assert list(test_key.enum_subkeys()) == ["zeta", "Alpha", "mid"]


def test_enum_subkeys_childless(test_key):
    """Test enumerating a key without children."""
    assert list(test_key.enum_subkeys()) == []


def test_enum_subkeys_is_lazy(test_key):
    """Test that nothing is queried until iteration starts."""
    test_key.create("A", AccessRights.ALL_ACCESS).close()
    names = test_key.enum_subkeys()
    test_key.create("B", AccessRights.ALL_ACCESS).close()
    assert list(names) == ["A", "B"]


def test_enum_subkeys_non_ascii(test_key):
    """Test subkey names outside ASCII."""
    test_key.create("世界", AccessRights.ALL_ACCESS).close()
    assert list(test_key.enum_subkeys()) == ["世界"]


def test_enum_needs_enumerate_rights(registry, test_key):
    """Test that an enumeration failure is raised, not swallowed."""
    with registry.open(test_key, rights=AccessRights.QUERY_VALUE) as handle:
        with pytest.raises(RegistryPermissionError):
            list(handle.enum_subkeys())


def test_enum_errors_raise_on_first_next(registry, test_key):
    """Test that a denied enumeration fails at iteration, not at the call."""
    with registry.open(test_key, rights=AccessRights.ENUMERATE_SUB_KEYS) as handle:
        names = handle.enum_values()
        with pytest.raises(RegistryPermissionError):
            next(names)


def test_enum_stops_on_closed_handle(registry, test_key):
    """Test that closing the handle mid-iteration stops production."""
    test_key.create("A", AccessRights.ALL_ACCESS).close()
    test_key.create("B", AccessRights.ALL_ACCESS).close()
    handle = registry.open(test_key)
    names = handle.enum_subkeys()
    assert next(names) == "A"
    handle.close()
    with pytest.raises(HandleClosedError):
        next(names)


def test_enum_values(test_key):
    """Test enumerating value names."""
    test_key.write_string("first", "1")
    test_key.write_binary("second", b"2")
    assert list(test_key.enum_values()) == ["first", "second"]


def test_del_subkey(test_key):
    """Test deleting a childless subkey."""
    test_key.create("leaf", AccessRights.ALL_ACCESS).close()
    test_key.del_subkey("leaf")
    assert list(test_key.enum_subkeys()) == []
    with pytest.raises(RegistryKeyNotFoundError):
        test_key.del_subkey("leaf")


def test_del_subkey_with_children_fails_del_tree_succeeds(registry, test_key):
    """Test that only del_tree removes a key with descendants."""
    with test_key.create("parent", AccessRights.ALL_ACCESS) as parent:
        parent.create("child\\grandchild", AccessRights.ALL_ACCESS).close()
        parent.write_string("v", "x")
    with pytest.raises(NativeOperationError):
        test_key.del_subkey("parent")
    test_key.del_tree("parent")
    assert list(test_key.enum_subkeys()) == []
    with pytest.raises(RegistryKeyNotFoundError):
        registry.open(test_key, "parent\\child")


def test_del_tree_without_subkey_keeps_key(registry, test_key):
    """Test that del_tree() empties the key but leaves it in place."""
    test_key.create("one", AccessRights.ALL_ACCESS).close()
    test_key.create("two\\deeper", AccessRights.ALL_ACCESS).close()
    test_key.del_tree()
    assert test_key.count_subkeys() == 0
    registry.open(test_key).close()


def test_del_tree_missing(test_key):
    """Test deleting a tree that does not exist."""
    with pytest.raises(RegistryKeyNotFoundError):
        test_key.del_tree("absent")


def test_use_of_deleted_key(registry, test_key):
    """Test that a handle to a deleted key reports an error."""
    child = test_key.create("doomed", AccessRights.ALL_ACCESS)
    test_key.del_subkey("doomed")
    with pytest.raises(NativeOperationError):
        child.write_string("x", "y")
    child.close()
