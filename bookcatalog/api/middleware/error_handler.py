"""
Error Handling for the book catalog API

Translates catalog exceptions into structured JSON error responses:
- 400 for missing required fields
- 404 for unknown records
- 409 for duplicate keys
- 502 for failed summary generation (cause logged, not returned)
"""

import traceback
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from bookcatalog.errors import BookCatalogException, SummaryGenerationError


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: str = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "detail": detail,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(BookCatalogException)
    async def catalog_exception_handler(request: Request, exc: BookCatalogException):
        if isinstance(exc, SummaryGenerationError):
            logger.error(
                f"{exc.code} ({exc.kind.value}) on {request.method} {request.url.path}: "
                f"{exc.__cause__!r}"
            )
        else:
            logger.warning(f"Catalog error: {exc.code} - {exc.message} ({exc.detail})")

        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}\n"
            f"{traceback.format_exc()}"
        )
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
