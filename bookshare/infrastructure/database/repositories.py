"""
Repositories

Thin data-access objects over one AsyncSession. They never commit: the
calling service owns the unit of work, except ``count_and_page`` which opens
its own read transaction so the total and the page come from one snapshot.
"""

from typing import Any

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bookshare.infrastructure.cache.keys import ListingQuery
from bookshare.infrastructure.database.models import Book, User

# Filters matched as case-insensitive substrings; the rest are exact
_CONTAINS_FILTERS = {
    "title": Book.title,
    "author": Book.author,
    "location": Book.location,
    "genre": Book.genre,
}
_EXACT_FILTERS = {
    "owner_id": Book.owner_id,
    "status": Book.status,
}


def listing_conditions(query: ListingQuery) -> list[ColumnElement[bool]]:
    """WHERE clauses for the non-empty filters of ``query``."""
    conditions: list[ColumnElement[bool]] = []
    for field, value in query.filters().items():
        if field in _CONTAINS_FILTERS:
            conditions.append(_CONTAINS_FILTERS[field].icontains(value, autoescape=True))
        else:
            conditions.append(_EXACT_FILTERS[field] == value)
    return conditions


class BookRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, book_id: str) -> Book | None:
        return await self._session.get(Book, book_id)

    async def get_with_owner(self, book_id: str) -> Book | None:
        stmt = select(Book).options(selectinload(Book.owner)).where(Book.id == book_id)
        return await self._session.scalar(stmt)

    async def count_and_page(self, query: ListingQuery) -> tuple[int, list[Book]]:
        """
        Total matching rows and one page of them, newest first.

        STAGE-DB.3: Listing query

        Both statements run inside a single transaction.
        """
        conditions = listing_conditions(query)
        count_stmt = select(func.count()).select_from(Book).where(*conditions)
        page_stmt = (
            select(Book)
            .options(selectinload(Book.owner))
            .where(*conditions)
            .order_by(Book.created_at.desc(), Book.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )

        async with self._session.begin():
            total = await self._session.scalar(count_stmt)
            books = list((await self._session.scalars(page_stmt)).all())

        return total or 0, books

    async def create(self, owner: User, **fields: Any) -> Book:
        book = Book(owner_id=owner.id, **fields)
        book.owner = owner
        self._session.add(book)
        await self._session.flush()
        return book

    async def update(self, book: Book, changes: dict[str, Any]) -> Book:
        """Apply a partial update; keys absent from ``changes`` are left alone."""
        for field, value in changes.items():
            setattr(book, field, value)
        await self._session.flush()
        return book

    async def delete(self, book: Book) -> None:
        await self._session.delete(book)
        await self._session.flush()


class UserRepository:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_clerk_id(self, clerk_id: str) -> User | None:
        return await self._session.scalar(select(User).where(User.clerk_id == clerk_id))

    async def create(self, clerk_id: str, **fields: Any) -> User:
        user = User(clerk_id=clerk_id, **fields)
        self._session.add(user)
        await self._session.flush()
        return user

    async def update(self, user: User, changes: dict[str, Any]) -> User:
        for field, value in changes.items():
            setattr(user, field, value)
        await self._session.flush()
        return user

    async def upsert(
        self,
        clerk_id: str,
        changes: dict[str, Any],
        create_defaults: dict[str, Any] | None = None,
    ) -> User:
        """
        Update the user with ``clerk_id`` or create it.

        On create, ``create_defaults`` fill the columns ``changes`` does not set.
        """
        user = await self.get_by_clerk_id(clerk_id)
        if user is not None:
            return await self.update(user, changes)
        return await self.create(clerk_id, **{**(create_defaults or {}), **changes})

    async def upsert_from_identity(self, clerk_id: str, email: str, name: str) -> User:
        """
        Mirror an identity-provider record.

        New users start without a role and with an empty mobile number.
        """
        return await self.upsert(
            clerk_id,
            {"email": email, "name": name},
            create_defaults={"mobile_number": "", "role": None},
        )
