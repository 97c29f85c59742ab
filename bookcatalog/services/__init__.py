"""
Service layer for the book catalog.
"""

from bookcatalog.services.book_service import BookService

__all__ = ["BookService"]
