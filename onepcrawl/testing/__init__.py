"""Testing utilities for onepcrawl consumers."""

from .fixtures import FakeOnePlatform, FakeResource

__all__ = ['FakeOnePlatform', 'FakeResource']
