"""
Database Module

Async SQLAlchemy models, engine wrapper and repositories.
"""

from .models import Base, Book, User
from .repositories import BookRepository, UserRepository
from .session import Database, store_errors

__all__ = [
    "Base",
    "Book",
    "BookRepository",
    "Database",
    "User",
    "UserRepository",
    "store_errors",
]
