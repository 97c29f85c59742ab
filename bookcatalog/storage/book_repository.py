"""
Book Repository

Async gateway over the ``books`` table:
- Each call runs in its own session (one round trip, no shared transaction)
- ISBN uniqueness violations surface as DuplicateKeyError
- Raw distinct-column queries for the aggregate endpoints
"""

from typing import Optional

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bookcatalog.errors import DuplicateKeyError
from .models import BookModel


def is_unique_violation(error: IntegrityError, column: str) -> bool:
    """
    Whether an IntegrityError was raised by the unique constraint on column.

    SQLite reports ``UNIQUE constraint failed: books.isbn``; Postgres names
    the violated index (``ix_books_isbn``).
    """
    message = str(error.orig).lower()
    return column in message and ("unique" in message or "duplicate" in message)


class BookRepository:
    """
    Repository for book records.

    Usage:
        repo = BookRepository(session_factory)

        book = await repo.create(
            isbn="9780441172719",
            title="Dune",
            author="Frank Herbert",
            publication_year=1965,
            language="en",
            summary="...",
        )
        same = await repo.get_by_isbn("9780441172719")
    """

    def __init__(self, session_factory: async_sessionmaker):
        """
        Initialize repository.

        Args:
            session_factory: Factory producing AsyncSession objects
        """
        self.session_factory = session_factory

    def get_session(self) -> AsyncSession:
        """Get database session."""
        return self.session_factory()

    async def list_all(self) -> list[BookModel]:
        """Return every stored book ordered by id."""
        async with self.get_session() as session:
            result = await session.execute(select(BookModel).order_by(BookModel.id))
            return list(result.scalars().all())

    async def get(self, book_id: int) -> Optional[BookModel]:
        """
        Get book by primary key.

        Args:
            book_id: Book ID

        Returns:
            BookModel or None
        """
        async with self.get_session() as session:
            return await session.get(BookModel, book_id)

    async def get_by_isbn(self, isbn: str) -> Optional[BookModel]:
        """
        Get book by ISBN.

        Args:
            isbn: ISBN exactly as stored

        Returns:
            BookModel or None
        """
        async with self.get_session() as session:
            stmt = select(BookModel).where(BookModel.isbn == isbn)
            return (await session.execute(stmt)).scalar_one_or_none()

    async def create(self, **fields) -> BookModel:
        """
        Insert a new book.

        Args:
            **fields: Column values (isbn, title, author, ...)

        Returns:
            The persisted book with id and timestamps populated

        Raises:
            DuplicateKeyError: If the ISBN is already stored
            IntegrityError: Any other constraint violation
        """
        isbn = fields.get("isbn")
        book = BookModel(**fields)
        async with self.get_session() as session:
            session.add(book)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Insert rejected for ISBN {isbn}: {e.orig}")
                if is_unique_violation(e, "isbn"):
                    raise DuplicateKeyError(isbn) from e
                raise
            await session.refresh(book)

        logger.info(f"Stored book {book.id} (ISBN {book.isbn})")
        return book

    async def save(self, book: BookModel) -> BookModel:
        """
        Persist an existing book, keyed by its primary key.

        Args:
            book: Book whose attributes have been modified

        Returns:
            The persisted book

        Raises:
            DuplicateKeyError: If the new ISBN collides with another book
        """
        async with self.get_session() as session:
            merged = await session.merge(book)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                logger.warning(f"Update rejected for book {book.id}: {e.orig}")
                if is_unique_violation(e, "isbn"):
                    raise DuplicateKeyError(book.isbn) from e
                raise
            await session.refresh(merged)
            return merged

    async def distinct_publication_years(self) -> list[int]:
        """Distinct non-null publication years, unordered."""
        async with self.get_session() as session:
            stmt = select(BookModel.publication_year).where(
                BookModel.publication_year.isnot(None),
            ).distinct()
            return list((await session.execute(stmt)).scalars().all())

    async def distinct_languages(self) -> list[str]:
        """Distinct non-null languages, unordered."""
        async with self.get_session() as session:
            stmt = select(BookModel.language).where(
                BookModel.language.isnot(None),
            ).distinct()
            return list((await session.execute(stmt)).scalars().all())
