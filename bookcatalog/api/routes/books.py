"""
Book API Routes

Listing, creation, partial update and distinct-value aggregates for books.
Errors raised by BookService are translated by the registered exception
handlers.
"""

from fastapi import APIRouter, Depends, status
from loguru import logger

from bookcatalog.api.schemas import (
    BookCreate,
    BookUpdate,
    BookResponse,
    PaginatedResponse,
    ErrorResponse,
)
from bookcatalog.api.dependencies import get_book_service
from bookcatalog.services.book_service import BookService


router = APIRouter(prefix="/books", tags=["books"])


@router.get(
    "",
    response_model=PaginatedResponse[BookResponse],
)
async def list_books(
    service: BookService = Depends(get_book_service),
):
    """List every book in the catalog."""
    logger.info("Listing books")
    return await service.get()


@router.post(
    "",
    response_model=BookResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Required field missing"},
        409: {"model": ErrorResponse, "description": "Book already exists"},
        502: {"model": ErrorResponse, "description": "Summary generation failed"},
    },
)
async def create_book(
    book: BookCreate,
    service: BookService = Depends(get_book_service),
):
    """
    Create a new book.

    The summary is generated from the title and ISBN; it cannot be
    supplied by the caller.
    """
    logger.info(f"Creating book: {book.title} (ISBN {book.isbn})")
    return await service.create(book)


@router.put(
    "/{book_id}",
    response_model=BookResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid book id"},
        404: {"model": ErrorResponse, "description": "Book not found"},
        409: {"model": ErrorResponse, "description": "ISBN already in use"},
    },
)
async def update_book(
    book_id: str,
    book: BookUpdate,
    service: BookService = Depends(get_book_service),
):
    """
    Update a book.

    Supports partial updates - only provided fields are modified.
    """
    logger.info(f"Updating book: {book_id}")
    return await service.update(book_id, book)


@router.get(
    "/publication-years",
    response_model=PaginatedResponse[int],
)
async def list_publication_years(
    service: BookService = Depends(get_book_service),
):
    """Distinct publication years, newest first."""
    return await service.get_publication_years()


@router.get(
    "/languages",
    response_model=PaginatedResponse[str],
)
async def list_languages(
    service: BookService = Depends(get_book_service),
):
    """Distinct languages in ascending order."""
    return await service.get_languages()
