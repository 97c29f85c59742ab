"""
Book Service

Validation, duplicate detection, summary generation and persistence for
the book resource.
"""

from typing import Optional

from loguru import logger

from bookcatalog.api.schemas import (
    BookCreate,
    BookUpdate,
    BookResponse,
    PaginatedResponse,
)
from bookcatalog.errors import (
    DuplicateKeyError,
    NotFoundError,
    RequiredFieldError,
)
from bookcatalog.storage.book_repository import BookRepository
from bookcatalog.storage.models import BookModel
from bookcatalog.summaries.generator import SummaryGenerator


# Checked in this order after the duplicate-ISBN lookup
REQUIRED_CREATE_FIELDS = ("title", "author", "publication_year", "language")

UPDATABLE_FIELDS = ("isbn", "title", "author", "publication_year", "language")

# Largest value the INTEGER primary key holds on every supported backend
MAX_BOOK_ID = 2**31 - 1


class BookService:
    """Service for creating, updating and listing books."""

    def __init__(
        self,
        book_repository: BookRepository,
        summary_generator: SummaryGenerator,
    ):
        """
        Initialize service.

        Args:
            book_repository: Persistence gateway for books
            summary_generator: Generator used for new books' summaries
        """
        self.repository = book_repository
        self.summary_generator = summary_generator

    async def get(self) -> PaginatedResponse[BookResponse]:
        """Return the whole catalog as a single page."""
        books = await self.repository.list_all()
        items = [BookResponse.model_validate(book) for book in books]
        return PaginatedResponse[BookResponse].single_page(items)

    async def create(self, request: BookCreate) -> BookModel:
        """
        Create a book with a generated summary.

        Fails fast on the first violation: missing ISBN, duplicate ISBN,
        then each remaining required field in order. The summary is
        generated only once every check has passed.

        Args:
            request: Creation payload

        Returns:
            The persisted book

        Raises:
            RequiredFieldError: A mandatory field is missing
            DuplicateKeyError: The ISBN is already stored
            SummaryGenerationError: The summary could not be generated
        """
        if not request.isbn:
            raise RequiredFieldError("isbn")

        existing = await self.repository.get_by_isbn(request.isbn)
        if existing:
            raise DuplicateKeyError(request.isbn)

        for field in REQUIRED_CREATE_FIELDS:
            if not getattr(request, field):
                raise RequiredFieldError(field)

        logger.info(f"Generating summary for '{request.title}' (ISBN {request.isbn})")
        summary = await self.summary_generator.generate(request.isbn, request.title)

        return await self.repository.create(
            isbn=request.isbn,
            title=request.title,
            author=request.author,
            publication_year=request.publication_year,
            language=request.language,
            summary=summary,
        )

    async def update(self, book_id: str, request: BookUpdate) -> BookModel:
        """
        Apply a partial update to a stored book.

        Only fields present in the payload are overwritten. The summary is
        never regenerated.

        Args:
            book_id: Book identifier as received from the caller
            request: Partial payload

        Returns:
            The merged, persisted book

        Raises:
            RequiredFieldError: The identifier is not a positive integer
                in the key range
            NotFoundError: No book has this identifier
        """
        numeric_id = self._parse_id(book_id)
        if numeric_id is None:
            raise RequiredFieldError("id")

        book = await self.repository.get(numeric_id)
        if book is None:
            raise NotFoundError("Book", str(book_id))

        changes = request.model_dump(exclude_none=True)
        for field in UPDATABLE_FIELDS:
            if field in changes:
                setattr(book, field, changes[field])

        logger.info(f"Updating book {numeric_id}: {sorted(changes)}")
        return await self.repository.save(book)

    async def get_publication_years(self) -> PaginatedResponse[int]:
        """Distinct publication years, newest first."""
        years = await self.repository.distinct_publication_years()
        return PaginatedResponse[int].single_page(sorted(years, reverse=True))

    async def get_languages(self) -> PaginatedResponse[str]:
        """Distinct languages in ascending lexical order."""
        languages = await self.repository.distinct_languages()
        return PaginatedResponse[str].single_page(sorted(languages))

    @staticmethod
    def _parse_id(book_id) -> Optional[int]:
        """Positive integer within the key range, or None."""
        try:
            value = int(str(book_id).strip())
        except (TypeError, ValueError):
            return None
        return value if 0 < value <= MAX_BOOK_ID else None
