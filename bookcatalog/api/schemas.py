"""
API Schemas for the book catalog

Pydantic models for request validation and response serialization:
- Book models
- User models
- Paginated envelope

Book request fields are all optional at the schema level: required-field
checks run in BookService so that the duplicate-ISBN check happens in the
documented order.
"""

from datetime import datetime
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field, ConfigDict

from bookcatalog.storage.models import UserRole


T = TypeVar("T")

# Zero stays accepted here so the service reports it as a missing field
MAX_PUBLICATION_YEAR = 9999


# =============================================================================
# Book Schemas
# =============================================================================

class BookCreate(BaseModel):
    """Book creation request."""

    isbn: Optional[str] = Field(None, max_length=32)
    title: Optional[str] = Field(None, max_length=500)
    author: Optional[str] = Field(None, max_length=500)
    publication_year: Optional[int] = Field(None, ge=0, le=MAX_PUBLICATION_YEAR)
    language: Optional[str] = Field(None, max_length=50)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "isbn": "9780441172719",
                "title": "Dune",
                "author": "Frank Herbert",
                "publication_year": 1965,
                "language": "en",
            }
        }
    )


class BookUpdate(BaseModel):
    """Book update request (partial)."""

    isbn: Optional[str] = Field(None, max_length=32)
    title: Optional[str] = Field(None, max_length=500)
    author: Optional[str] = Field(None, max_length=500)
    publication_year: Optional[int] = Field(None, ge=0, le=MAX_PUBLICATION_YEAR)
    language: Optional[str] = Field(None, max_length=50)


class BookResponse(BaseModel):
    """Book response model."""

    id: int
    isbn: str
    title: str
    author: str
    publication_year: int
    language: str
    summary: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# User Schemas
# =============================================================================

class LoginRequest(BaseModel):
    """Credentials carried by a login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """User response model. The password is never serialized."""

    id: int
    username: str
    user_role: UserRole
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Envelope
# =============================================================================

class PaginatedResponse(BaseModel, Generic[T]):
    """Page of results. The catalog always returns a single page."""

    page: int = 1
    count: int
    total: int
    items: list[T]

    @classmethod
    def single_page(cls, items: list) -> "PaginatedResponse":
        """Wrap a full result set as page 1."""
        return cls(page=1, count=len(items), total=len(items), items=items)


# =============================================================================
# Error Schemas
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: Optional[str] = None
    code: str
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "Book not found",
                "detail": "No Book with identifier '42' exists",
                "code": "NOT_FOUND",
                "timestamp": "2024-01-15T10:30:00Z",
            }
        }
    )


# =============================================================================
# Health Check
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
