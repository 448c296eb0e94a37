"""
Identity Module

Adapter for the external identity provider.
"""

from .provider import ClerkIdentityProvider, EmailAddress, IdentityProfile, IdentityProvider

__all__ = [
    "ClerkIdentityProvider",
    "EmailAddress",
    "IdentityProfile",
    "IdentityProvider",
]
