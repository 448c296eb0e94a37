"""
Book Listing Routes

    GET    /api/books              paginated, filtered listing (cached)
    POST   /api/books              create a listing (owners only)
    GET    /api/books/{book_id}    one listing with owner contact details
    PUT    /api/books/{book_id}    partial update (owner of the book only)
    DELETE /api/books/{book_id}    delete (owner of the book only)

Route handlers only translate HTTP into service calls. Failures are raised as
``APIError`` subclasses by the services and mapped to ``{"error": ...}``
bodies by the exception handlers registered in ``app.py``.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Header, Query, status

from bookshare.application.api.dependencies import (
    BookServiceDep,
    CallerIdDep,
    ListingServiceDep,
)
from bookshare.application.api.models import (
    BookCreateRequest,
    BookListResponse,
    BookResponse,
    BookUpdateRequest,
    ErrorResponse,
    SuccessResponse,
)
from bookshare.core.config.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from bookshare.infrastructure.cache.keys import ListingQuery

router = APIRouter(prefix="/api/books", tags=["Books"])

_ERRORS = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get(
    "",
    responses={
        200: {"model": BookListResponse},
        500: {"model": ErrorResponse},
    },
)
async def list_books(
    listings: ListingServiceDep,
    page: Annotated[int, Query(ge=1)] = DEFAULT_PAGE,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
    owner_id: Annotated[str | None, Query(alias="ownerId")] = None,
    title: str | None = None,
    author: str | None = None,
    location: str | None = None,
    genre: str | None = None,
    book_status: Annotated[str | None, Query(alias="status")] = None,
    x_preload: Annotated[str | None, Header()] = None,
) -> dict[str, Any]:
    """
    One page of listings, newest first.

    Text filters (title, author, location, genre) are case-insensitive
    substring matches; ownerId and status are exact. Sending
    ``x-preload: true`` warms the cache for this page and answers
    ``{"success": true, "cached": true}`` instead of the payload.
    """
    query = ListingQuery(
        page=page,
        limit=limit,
        owner_id=owner_id,
        title=title,
        author=author,
        location=location,
        genre=genre,
        status=book_status,
    )
    preload = (x_preload or "").lower() == "true"
    return await listings.list_books(query, preload=preload)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BookResponse,
    response_model_by_alias=True,
    responses=_ERRORS,
)
async def create_book(
    body: BookCreateRequest, books: BookServiceDep, caller_id: CallerIdDep
) -> dict[str, Any]:
    return await books.create_book(caller_id, body)


@router.get(
    "/{book_id}",
    response_model=BookResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_book(book_id: str, books: BookServiceDep) -> dict[str, Any]:
    return await books.get_book(book_id)


@router.put("/{book_id}", response_model=BookResponse, responses=_ERRORS)
async def update_book(
    book_id: str, body: BookUpdateRequest, books: BookServiceDep, caller_id: CallerIdDep
) -> dict[str, Any]:
    return await books.update_book(caller_id, book_id, body)


@router.delete("/{book_id}", response_model=SuccessResponse, responses=_ERRORS)
async def delete_book(
    book_id: str, books: BookServiceDep, caller_id: CallerIdDep
) -> SuccessResponse:
    await books.delete_book(caller_id, book_id)
    return SuccessResponse()
