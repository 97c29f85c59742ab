"""
Request/Response logging middleware.

One structured log line per request with:
- Method, path, status and duration
- Correlation ID (X-Request-ID), echoed on the response
- Optional request body with credentials redacted
"""

import time
import uuid
import json
import logging
from typing import Optional, Callable, Set, Any, Dict
from dataclasses import dataclass, field
from contextvars import ContextVar

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

# Context variable for request ID (accessible throughout request lifecycle)
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("bookcatalog.api")


@dataclass
class LoggingConfig:
    """Configuration for request logging."""

    enabled: bool = True
    log_request_body: bool = False
    max_body_log_size: int = 10000

    excluded_paths: Set[str] = field(default_factory=lambda: {
        "/health",
        "/favicon.ico",
    })

    # Matched case-insensitively against JSON body keys
    redacted_fields: Set[str] = field(default_factory=lambda: {
        "password",
        "token",
        "api_key",
        "access_token",
    })

    slow_request_threshold: float = 2.0
    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        for attr in ("request_data", "status_code", "duration_ms"):
            if hasattr(record, attr):
                log_data[attr] = getattr(record, attr)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def redact_sensitive_data(
    data: Any,
    redacted_fields: Set[str],
    replacement: str = "[REDACTED]",
) -> Any:
    """
    Recursively redact sensitive fields from data structure.

    Args:
        data: Data to redact (dict, list, or primitive).
        redacted_fields: Set of field names to redact.
        replacement: Replacement string for redacted values.

    Returns:
        Data with sensitive fields redacted.
    """
    if isinstance(data, dict):
        return {
            key: replacement if key.lower() in redacted_fields
            else redact_sensitive_data(value, redacted_fields, replacement)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact_sensitive_data(item, redacted_fields, replacement) for item in data]
    return data


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request that is not on an excluded path."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    async def _get_request_body(self, request: Request) -> Optional[str]:
        body = await request.body()
        if not body:
            return None
        if len(body) > self.config.max_body_log_size:
            return f"[BODY TOO LARGE: {len(body)} bytes]"

        try:
            body_json = json.loads(body)
        except json.JSONDecodeError:
            return body.decode("utf-8", errors="replace")
        return json.dumps(redact_sensitive_data(body_json, self.config.redacted_fields))

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(
            self.config.request_id_header,
            str(uuid.uuid4())[:8],
        )
        request_id_var.set(request_id)

        if not self.config.enabled or request.url.path in self.config.excluded_paths:
            response = await call_next(request)
            response.headers[self.config.request_id_header] = request_id
            return response

        start_time = time.time()

        request_data: Dict[str, Any] = {
            "method": request.method,
            "path": request.url.path,
            "query": str(request.url.query) or None,
            "client_ip": request.client.host if request.client else None,
        }
        if self.config.log_request_body:
            body = await self._get_request_body(request)
            if body:
                request_data["body"] = body

        response = await call_next(request)

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)
        response.headers[self.config.request_id_header] = request_id

        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400 or duration > self.config.slow_request_threshold:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        message = f"{request.method} {request.url.path} -> {response.status_code} ({duration_ms}ms)"
        if duration > self.config.slow_request_threshold:
            message = f"[SLOW] {message}"

        logger.log(
            log_level,
            message,
            extra={
                "request_data": request_data,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )
        return response


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Configure logging middleware and formatters.

    Args:
        app: FastAPI application instance.
        config: Logging configuration.
        structured: Use JSON structured logging format.
    """
    if config is None:
        config = LoggingConfig()

    catalog_logger = logging.getLogger("bookcatalog")
    already_structured = any(
        isinstance(h.formatter, StructuredLogFormatter) for h in catalog_logger.handlers
    )

    if structured and not already_structured:
        handler = logging.StreamHandler()
        handler.setFormatter(StructuredLogFormatter())
        catalog_logger.addHandler(handler)
        catalog_logger.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config)
