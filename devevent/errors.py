"""Standardized error handling for the API.

This module provides:
1. Custom exception classes for domain-specific errors
2. Exception handlers for FastAPI
3. Standard error response models

Usage:
    from devevent.errors import NotFoundError, FieldValidationError

    # In controllers:
    if not event:
        raise NotFoundError(detail="Event not found", slug=slug)

    # Register handlers in main.py:
    from devevent.errors import register_exception_handlers
    register_exception_handlers(app)
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str
    detail: str | None = None
    error_code: str | None = None
    context: dict[str, Any] | None = None


class APIError(Exception):
    """Base class for API errors."""

    status_code: int = 500
    error: str = "internal_error"
    detail: str = "An unexpected error occurred"

    def __init__(
        self,
        detail: str | None = None,
        error_code: str | None = None,
        **context: Any,
    ) -> None:
        self.detail = detail or self.__class__.detail
        self.error_code = error_code
        self.context = context if context else None
        super().__init__(self.detail)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.error,
            detail=self.detail,
            error_code=self.error_code,
            context=self.context,
        )


class NotFoundError(APIError):
    """Resource not found error (404)."""

    status_code = 404
    error = "not_found"
    detail = "Resource not found"


class BadRequestError(APIError):
    """Bad request error (400)."""

    status_code = 400
    error = "bad_request"
    detail = "Invalid request"


class ServiceUnavailableError(APIError):
    """Service unavailable error (503)."""

    status_code = 503
    error = "service_unavailable"
    detail = "Service temporarily unavailable"


class ConfigurationError(APIError):
    """Required configuration is missing (500). Not retryable."""

    status_code = 500
    error = "configuration_error"
    detail = "Server is misconfigured"


class ConnectivityError(ServiceUnavailableError):
    """The database could not be reached (503). Callers may retry."""

    error = "database_unavailable"
    detail = "Database connection failed"


class FieldValidationError(BadRequestError):
    """One or more candidate fields failed validation (400).

    ``fields`` maps each failing field name to a message describing the
    expected format.
    """

    error = "validation_error"
    detail = "Validation failed"

    def __init__(self, fields: dict[str, str], detail: str | None = None) -> None:
        self.fields = dict(fields)
        if detail is None:
            detail = "; ".join(f"{name}: {msg}" for name, msg in self.fields.items())
        super().__init__(detail=detail, fields=self.fields)

    @classmethod
    def for_field(cls, field: str, message: str) -> "FieldValidationError":
        return cls({field: message}, detail=message)

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "FieldValidationError":
        """Collapse a pydantic ValidationError to one message per field."""
        fields: dict[str, str] = {}
        for err in exc.errors():
            name = ".".join(str(part) for part in err["loc"][:1]) or "__root__"
            message = err["msg"].removeprefix("Value error, ")
            fields.setdefault(name, message)
        return cls(fields)


class ReferentialError(FieldValidationError):
    """A booking references an event that does not exist (400)."""

    error = "invalid_reference"

    def __init__(self, detail: str = "Referenced event does not exist") -> None:
        super().__init__({"eventId": detail}, detail=detail)


class ReferenceLookupError(FieldValidationError):
    """The referenced event could not be looked up (503)."""

    status_code = 503
    error = "reference_lookup_failed"

    def __init__(self, detail: str = "Failed to validate event reference") -> None:
        super().__init__({"eventId": detail}, detail=detail)


class ConflictError(APIError):
    """A unique field already holds the submitted value (409)."""

    status_code = 409
    error = "conflict"
    detail = "Duplicate value error"

    def __init__(self, field: str, key_value: dict[str, Any] | None = None) -> None:
        self.field = field
        self.key_value = key_value or {}
        super().__init__(
            detail=f"A document with the same {field} already exists.",
            field=field,
            key_value=self.key_value,
        )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle custom API errors."""
    logger.warning(
        "API error: %s (status=%d, path=%s)",
        exc.detail,
        exc.status_code,
        request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(exclude_none=True),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTPExceptions with standard format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=_status_to_error_type(exc.status_code),
            detail=str(exc.detail),
        ).model_dump(exclude_none=True),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions."""
    logger.exception("Unhandled exception: %s (path=%s)", exc, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_error",
            detail="An unexpected error occurred",
        ).model_dump(exclude_none=True),
    )


def _status_to_error_type(status_code: int) -> str:
    """Map HTTP status code to error type string."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        422: "validation_error",
        429: "rate_limited",
        500: "internal_error",
        502: "bad_gateway",
        503: "service_unavailable",
        504: "gateway_timeout",
    }
    return mapping.get(status_code, "error")


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
