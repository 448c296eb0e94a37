"""
Exception Module

Structured exception hierarchy for the BookShare service.

Module Structure:
-----------------
- **base.py**: BookShareError base class
- **cache.py**: External cache (Redis) exceptions
- **api.py**: Exceptions that carry an HTTP status code

Usage:
------
```python
from bookshare.core.exceptions import BookNotFoundError, PersistenceError
```
"""

from bookshare.core.exceptions.api import (
    APIError,
    AuthenticationRequiredError,
    BookNotFoundError,
    IdentityProviderError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
    UserNotFoundError,
)
from bookshare.core.exceptions.base import BookShareError
from bookshare.core.exceptions.cache import CacheConnectionError, CacheError, CacheOperationError

__all__ = [
    # Base
    "BookShareError",
    # Cache
    "CacheError",
    "CacheConnectionError",
    "CacheOperationError",
    # API
    "APIError",
    "AuthenticationRequiredError",
    "PermissionDeniedError",
    "NotFoundError",
    "BookNotFoundError",
    "UserNotFoundError",
    "InvalidRequestError",
    "PersistenceError",
    "IdentityProviderError",
]
