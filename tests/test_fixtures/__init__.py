"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import CacheTestFactory, FakeClock, FakeExternalCache, FakeRedis
from .data_factory import create_book, create_user
from .identity_factory import FakeIdentityProvider, make_profile

__all__ = [
    "CacheTestFactory",
    "FakeClock",
    "FakeExternalCache",
    "FakeIdentityProvider",
    "FakeRedis",
    "create_book",
    "create_user",
    "make_profile",
]
