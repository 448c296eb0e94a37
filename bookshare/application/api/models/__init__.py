"""
API Models Package
==================

Pydantic models for API request/response validation.

ORGANIZATION:
-------------
- common.py: camelCase base model and error/success envelopes
- books.py: listing request/response models
- users.py: user profile models
- webhooks.py: identity-provider webhook envelope
"""

from bookshare.application.api.models.books import (
    BookCreateRequest,
    BookListItem,
    BookListResponse,
    BookResponse,
    BookUpdateRequest,
    OwnerContact,
    OwnerSummary,
    Pagination,
    PreloadResponse,
)
from bookshare.application.api.models.common import CamelModel, ErrorResponse, SuccessResponse
from bookshare.application.api.models.users import UserResponse, UserUpdateRequest
from bookshare.application.api.models.webhooks import WebhookEvent, WebhookResponse

__all__ = [
    "BookCreateRequest",
    "BookListItem",
    "BookListResponse",
    "BookResponse",
    "BookUpdateRequest",
    "CamelModel",
    "ErrorResponse",
    "OwnerContact",
    "OwnerSummary",
    "Pagination",
    "PreloadResponse",
    "SuccessResponse",
    "UserResponse",
    "UserUpdateRequest",
    "WebhookEvent",
    "WebhookResponse",
]
