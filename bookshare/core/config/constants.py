"""
System Constants and Enumerations

This module defines system-wide constants and enumerations used across the
BookShare listing service.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
"""

from enum import Enum

# ============================================================================
# Domain Enumerations
# ============================================================================


class BookStatus(str, Enum):
    """Ownership state of a listed book."""

    AVAILABLE = "available"
    RENTED = "rented"
    EXCHANGED = "exchanged"


class BookCondition(str, Enum):
    """Physical condition reported by the owner."""

    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class UserRole(str, Enum):
    """
    Onboarding role.

    OWNER: may create listings
    SEEKER: browses and contacts owners
    """

    OWNER = "owner"
    SEEKER = "seeker"


# ============================================================================
# Cache Tiers and External Cache States
# ============================================================================


class CacheTier(str, Enum):
    """
    Cache tiers on the listing read path.

    EXTERNAL: shared Redis cache
    FALLBACK: process-local bounded store behind the cache service
    LOCAL: the listing route's own bounded store
    """

    EXTERNAL = "external"
    FALLBACK = "fallback"
    LOCAL = "local"


class ExternalCacheState(str, Enum):
    """
    Lifecycle of the external cache handle.

    DISABLED -> no URL configured (local-cache-only mode)
    DISCONNECTED -> CONNECTING -> CONNECTED
    CONNECTING -> FAILED (terminal for the process lifetime)
    """

    DISABLED = "disabled"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


# ============================================================================
# Listing Query Defaults
# ============================================================================

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 100

# Filter order is part of the cache key contract. Do not reorder.
LISTING_FILTER_FIELDS = ("owner_id", "title", "author", "location", "genre", "status")

# ============================================================================
# Cache Key Namespaces
# ============================================================================

CACHE_KEY_DELIMITER = ":"
CACHE_NAMESPACE_BOOKS = "books"
CACHE_NAMESPACE_USER = "user"

# ============================================================================
# HTTP Headers
# ============================================================================

HEADER_REQUEST_ID = "X-Request-ID"
HEADER_USER_ID = "X-User-ID"
HEADER_PRELOAD = "x-preload"

# Identity provider webhook delivery headers (all three must be present)
WEBHOOK_SIGNATURE_HEADERS = ("svix-id", "svix-timestamp", "svix-signature")

# ============================================================================
# Webhook Events
# ============================================================================

WEBHOOK_EVENT_USER_CREATED = "user.created"
WEBHOOK_EVENT_USER_UPDATED = "user.updated"
PLACEHOLDER_EMAIL_DOMAIN = "placeholder.com"
