"""
Book Service
============

Create, read, update and delete single listings.

AUTHORIZATION ORDER:
--------------------
Every mutation re-resolves the caller against the store (no session cache)
and checks, in order:

1. caller resolved by the identity provider      -> 401 "Unauthorized"
2. caller has a user record                      -> 404 "User not found"
3. target book exists (update/delete)            -> 404 "Book not found"
4. caller owns the book / has the owner role     -> 403

Writes do not touch cached listing pages unless ``invalidate_on_write`` is
enabled, so a listing may show a changed book for up to one TTL.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.application.api.models.books import (
    BookCreateRequest,
    BookResponse,
    BookUpdateRequest,
)
from bookshare.application.services.listing_service import ListingService
from bookshare.core.config.constants import BookStatus, UserRole
from bookshare.core.exceptions import (
    AuthenticationRequiredError,
    BookNotFoundError,
    PermissionDeniedError,
    UserNotFoundError,
)
from bookshare.core.logging.logger import get_logger
from bookshare.infrastructure.database.models import User
from bookshare.infrastructure.database.repositories import BookRepository, UserRepository
from bookshare.infrastructure.database.session import Database, store_errors

logger = get_logger(__name__)


class BookService:
    def __init__(
        self,
        database: Database,
        listings: ListingService,
        invalidate_on_write: bool = False,
    ):
        self._db = database
        self._listings = listings
        self._invalidate_on_write = invalidate_on_write

    async def get_book(self, book_id: str) -> dict[str, Any]:
        async with self._db.session() as session:
            with store_errors("Failed to fetch book", book_id=book_id):
                book = await BookRepository(session).get_with_owner(book_id)
            if book is None:
                raise BookNotFoundError()
            return self._serialize(book)

    async def create_book(self, clerk_id: str | None, body: BookCreateRequest) -> dict[str, Any]:
        """
        Create a listing owned by the caller.

        Raises:
            AuthenticationRequiredError: No caller
            UserNotFoundError: Caller has no user record
            PermissionDeniedError: Caller is not an owner
            PersistenceError: "Failed to create book listing"
        """
        async with self._db.session() as session:
            with store_errors("Failed to create book listing"):
                user = await self._resolve_caller(session, clerk_id)

                if user.role != UserRole.OWNER.value:
                    raise PermissionDeniedError("Only book owners can create listings")

                fields = body.model_dump(mode="json")
                fields["status"] = BookStatus.AVAILABLE.value
                book = await BookRepository(session).create(user, **fields)
                await session.commit()

            logger.info("Book created", stage="B.1", book_id=book.id, owner_id=user.id)
            result = self._serialize(book)

        await self._after_write()
        return result

    async def update_book(
        self, clerk_id: str | None, book_id: str, body: BookUpdateRequest
    ) -> dict[str, Any]:
        """
        Apply a partial update to one of the caller's books.

        Raises:
            PermissionDeniedError: "You can only update your own books"
            PersistenceError: "Failed to update book"
        """
        async with self._db.session() as session:
            with store_errors("Failed to update book", book_id=book_id):
                user = await self._resolve_caller(session, clerk_id)
                books = BookRepository(session)

                book = await books.get_with_owner(book_id)
                if book is None:
                    raise BookNotFoundError()
                if book.owner_id != user.id:
                    raise PermissionDeniedError("You can only update your own books")

                await books.update(book, body.changes())
                await session.commit()

            logger.info("Book updated", stage="B.2", book_id=book_id)
            result = self._serialize(book)

        await self._after_write()
        return result

    async def delete_book(self, clerk_id: str | None, book_id: str) -> None:
        """
        Raises:
            PermissionDeniedError: "You can only delete your own books"
            PersistenceError: "Failed to delete book"
        """
        async with self._db.session() as session:
            with store_errors("Failed to delete book", book_id=book_id):
                user = await self._resolve_caller(session, clerk_id)
                books = BookRepository(session)

                book = await books.get(book_id)
                if book is None:
                    raise BookNotFoundError()
                if book.owner_id != user.id:
                    raise PermissionDeniedError("You can only delete your own books")

                await books.delete(book)
                await session.commit()

        logger.info("Book deleted", stage="B.3", book_id=book_id)
        await self._after_write()

    @staticmethod
    async def _resolve_caller(session: AsyncSession, clerk_id: str | None) -> User:
        if not clerk_id:
            raise AuthenticationRequiredError()

        user = await UserRepository(session).get_by_clerk_id(clerk_id)
        if user is None:
            raise UserNotFoundError()
        return user

    @staticmethod
    def _serialize(book) -> dict[str, Any]:
        return BookResponse.model_validate(book).model_dump(mode="json", by_alias=True)

    async def _after_write(self) -> None:
        if self._invalidate_on_write:
            await self._listings.invalidate()
