"""
Error kinds for the book catalog.

Every error carries the HTTP status and machine-readable code it should be
reported with; translation to a response happens in
``bookcatalog.api.middleware.error_handler``.
"""

from enum import Enum
from typing import Optional


class BookCatalogException(Exception):
    """Base exception for catalog errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: str = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class RequiredFieldError(BookCatalogException):
    """A mandatory input was absent."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            message=f"{field} is required",
            code="REQUIRED_FIELD_MISSING",
            status_code=400,
            detail=f"Field '{field}' must be provided",
        )


class DuplicateKeyError(BookCatalogException):
    """A unique key is already taken."""

    def __init__(self, key: str, field: str = "isbn"):
        self.key = key
        self.field = field
        super().__init__(
            message=f"A record with this {field} already exists",
            code="DUPLICATE_KEY",
            status_code=409,
            detail=f"{field} '{key}' is already in use",
        )


class NotFoundError(BookCatalogException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource} with identifier '{identifier}' exists",
        )


class SummaryFailureKind(str, Enum):
    """Why a summary could not be generated."""
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    EMPTY_RESPONSE = "empty_response"

    @property
    def retryable(self) -> bool:
        return self in (SummaryFailureKind.TIMEOUT, SummaryFailureKind.RATE_LIMITED)


class SummaryGenerationError(BookCatalogException):
    """
    The text-generation call did not produce a summary.

    The kind is kept for logging and retry decisions; the response body
    stays generic.
    """

    def __init__(self, kind: Optional[SummaryFailureKind] = None):
        self.kind = kind or SummaryFailureKind.PROVIDER_ERROR
        super().__init__(
            message="Summary generation failed",
            code="SUMMARY_GENERATION_FAILED",
            status_code=502,
            detail="The book summary could not be generated",
        )
