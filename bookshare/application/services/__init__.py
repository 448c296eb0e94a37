"""
Application Services

Business logic behind the HTTP routes. Services receive their collaborators
through the constructor and are built once per application in the lifespan.
"""

from .book_service import BookService
from .listing_service import ListingService
from .user_service import UserService
from .webhook_service import WebhookService

__all__ = [
    "BookService",
    "ListingService",
    "UserService",
    "WebhookService",
]
