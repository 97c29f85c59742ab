"""
Book catalog - FastAPI Backend.

The application itself lives in ``bookcatalog.api.main``; this package
only re-exports the schemas so that the service layer can use them
without importing the app.
"""

from .schemas import (
    BookCreate,
    BookUpdate,
    BookResponse,
    LoginRequest,
    UserResponse,
    PaginatedResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    "BookCreate",
    "BookUpdate",
    "BookResponse",
    "LoginRequest",
    "UserResponse",
    "PaginatedResponse",
    "HealthResponse",
    "ErrorResponse",
]
