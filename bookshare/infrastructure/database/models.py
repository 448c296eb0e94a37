"""
Relational Models

SQLAlchemy 2.x declarative models for users and their book listings.

Enumerated columns (role, status, condition) are stored as plain strings;
validation of their values happens at the API boundary.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from bookshare.core.config.constants import BookStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class UUIDPrimaryKeyMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class User(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """
    A BookShare member, mirrored from the identity provider.

    Attributes:
        clerk_id: Identity-provider user id (unique)
        role: "owner" or "seeker"; None until onboarding completes
        mobile_number: Contact number, "" when never provided
    """

    __tablename__ = "users"

    clerk_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    role: Mapped[str | None] = mapped_column(String(20), nullable=True)
    mobile_number: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    books: Mapped[list[Book]] = relationship(
        back_populates="owner", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', clerk_id='{self.clerk_id}', role={self.role})>"


class Book(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A listed book and its ownership state."""

    __tablename__ = "books"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    author: Mapped[str] = mapped_column(String(255), nullable=False)
    genre: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_info: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=BookStatus.AVAILABLE.value
    )
    condition: Mapped[str | None] = mapped_column(String(20), nullable=True)
    cover_image: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    owner_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    owner: Mapped[User] = relationship(back_populates="books")

    __table_args__ = (
        Index("ix_books_status_created_at", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Book(id='{self.id}', title='{self.title}', status='{self.status}')>"
