"""
Shared fixtures.

Tests run against the in-memory engine in both character widths.
"""

import pytest

from reg_access import AccessRights, CharWidth, MemoryEngine, Registry, RegistryConfig

TEST_ROOT = "HKEY_CURRENT_USER\\Software\\reg_access_test"


@pytest.fixture(params=[CharWidth.WIDE, CharWidth.NARROW], ids=["wide", "narrow"])
def width(request):
    return request.param


@pytest.fixture
def config(width):
    return RegistryConfig(char_width=width, narrow_encoding="utf-8", backend="memory")


@pytest.fixture
def engine(config):
    return MemoryEngine(config.char_width, config.narrow_encoding)


@pytest.fixture
def registry(engine, config):
    return Registry(engine, config)


@pytest.fixture
def test_key(registry):
    """A fresh key with full access, removed after the test."""
    handle = registry.create_or_open(TEST_ROOT, rights=AccessRights.ALL_ACCESS)
    yield handle
    handle.close()
    registry.root("HKEY_CURRENT_USER").del_tree("Software\\reg_access_test")
