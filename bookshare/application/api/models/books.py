"""
Book Listing API Models

Request bodies for creating and updating listings and the response shapes of
the listing endpoints.
"""

from datetime import datetime

from pydantic import Field

from bookshare.application.api.models.common import CamelModel
from bookshare.core.config.constants import BookCondition, BookStatus


class OwnerSummary(CamelModel):
    """Owner fields embedded in listing items."""

    id: str
    name: str


class OwnerContact(OwnerSummary):
    """Owner fields embedded in single-book responses."""

    email: str
    mobile_number: str


class BookBase(CamelModel):
    id: str
    title: str
    author: str
    genre: str | None = None
    description: str | None = None
    location: str
    contact_info: str
    status: BookStatus
    condition: BookCondition | None = None
    cover_image: str | None = None
    owner_id: str
    created_at: datetime
    updated_at: datetime


class BookListItem(BookBase):
    owner: OwnerSummary


class BookResponse(BookBase):
    owner: OwnerContact


class Pagination(CamelModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class BookListResponse(CamelModel):
    """
    One page of listings.

    Example:
        {"items": [], "pagination": {"page": 1, "limit": 12, "totalItems": 0, "totalPages": 0}}
    """

    items: list[BookListItem]
    pagination: Pagination


class PreloadResponse(CamelModel):
    """Lightweight answer to a cache-warming request."""

    success: bool = True
    cached: bool = True


class BookCreateRequest(CamelModel):
    """
    New listing.

    Status is not accepted here: new listings always start as "available".
    """

    title: str = Field(..., min_length=1, max_length=255)
    author: str = Field(..., min_length=1, max_length=255)
    genre: str | None = Field(default=None, max_length=100)
    description: str | None = None
    location: str = Field(..., min_length=1, max_length=255)
    contact_info: str = Field(..., min_length=1, max_length=255)
    condition: BookCondition | None = None
    cover_image: str | None = Field(default=None, max_length=1000)


class BookUpdateRequest(CamelModel):
    """Partial update; only fields present in the request body are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    author: str | None = Field(default=None, min_length=1, max_length=255)
    genre: str | None = Field(default=None, max_length=100)
    description: str | None = None
    location: str | None = Field(default=None, min_length=1, max_length=255)
    contact_info: str | None = Field(default=None, min_length=1, max_length=255)
    status: BookStatus | None = None
    condition: BookCondition | None = None
    cover_image: str | None = Field(default=None, max_length=1000)

    def changes(self) -> dict:
        """
        Fields explicitly sent by the client, enums flattened to values.

        An explicit null is dropped for columns that cannot be empty.
        """
        return {
            field: value
            for field, value in self.model_dump(exclude_unset=True, mode="json").items()
            if value is not None or field not in _REQUIRED_COLUMNS
        }


_REQUIRED_COLUMNS = frozenset({"title", "author", "location", "contact_info", "status"})
