"""
Storage Module for the book catalog

Relational persistence through SQLAlchemy's asyncio ORM:
- Book and user models
- Book repository (CRUD + distinct-column aggregates)
- User repository
"""

from bookcatalog.storage.models import (
    Base,
    BookModel,
    UserModel,
    UserRole,
)
from bookcatalog.storage.book_repository import BookRepository
from bookcatalog.storage.user_repository import UserRepository

__all__ = [
    # Models
    "Base",
    "BookModel",
    "UserModel",
    "UserRole",
    # Repositories
    "BookRepository",
    "UserRepository",
]
