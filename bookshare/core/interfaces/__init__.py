"""
Core Interfaces Module

Protocols and value types shared between the infrastructure and application
layers.

Components:
-----------
- **cache.py**: ExternalCacheBackend protocol and the CacheResult value type
"""

from bookshare.core.interfaces.cache import CacheResult, CacheResultStatus, ExternalCacheBackend

__all__ = [
    "CacheResult",
    "CacheResultStatus",
    "ExternalCacheBackend",
]
