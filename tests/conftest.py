"""Shared fixtures for the onepcrawl test suite."""

import pytest

from onepcrawl.testing import FakeOnePlatform


@pytest.fixture
def platform():
    """Empty fake platform: just the root client."""
    return FakeOnePlatform()


@pytest.fixture
def sample_platform():
    """Fake platform with a small mixed tree.

    Structure:
    root (client)
    ├── c1 (client, depth 1)
    │   ├── c1a (client, depth 2)
    │   │   └── p1a (dataport, depth 3)
    │   └── p1 (dataport, depth 2)
    ├── c2 (client, depth 1)
    ├── p0 (dataport, depth 1)
    ├── r0 (datarule, depth 1)
    └── s0 (dispatch, depth 1)
    """
    platform = FakeOnePlatform()
    platform.add("c1")
    platform.add("c1a", parent="c1")
    platform.add("p1a", kind="dataport", parent="c1a")
    platform.add("p1", kind="dataport", parent="c1")
    platform.add("c2")
    platform.add("p0", kind="dataport")
    platform.add("r0", kind="datarule")
    platform.add("s0", kind="dispatch")
    return platform

