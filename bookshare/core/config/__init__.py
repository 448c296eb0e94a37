"""
Configuration Module

- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants, enums and header names

Usage:
------
```python
from bookshare.core.config import get_settings
from bookshare.core.config.constants import BookStatus

settings = get_settings()
ttl = settings.cache.CACHE_LISTING_TTL
```
"""

from bookshare.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]
