"""Canonical JSON response envelopes.

Success: ``{"data"?, "message"?, "time"}``
Error:   ``{"error", "message", "code", "details"?, "time"}``

``time`` is always an RFC3339 UTC timestamp with second precision.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from shared_kernel.errors import ApiError, ValidationError


def utc_timestamp() -> str:
    """Current time as RFC3339 UTC, e.g. ``2024-05-01T12:00:00Z``."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class FieldError(BaseModel):
    """A single field-level validation failure."""

    field: str = Field(..., description="Offending field or parameter")
    message: str = Field(..., description="Why the value was rejected")
    value: str | None = Field(default=None, description="The rejected value")


class ErrorResponse(BaseModel):
    """Error envelope returned for every non-2xx response."""

    error: str = Field(..., description="Machine-oriented error description")
    message: str = Field(..., description="Human-readable summary")
    code: int = Field(..., description="HTTP status code")
    details: dict[str, Any] | None = Field(default=None)
    time: str = Field(default_factory=utc_timestamp)

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class SuccessResponse(BaseModel):
    """Success envelope; carries data, a message, or both."""

    data: Any = None
    message: str | None = None
    time: str = Field(default_factory=utc_timestamp)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.data is not None:
            body["data"] = jsonable_encoder(self.data)
        if self.message:
            body["message"] = self.message
        body["time"] = self.time
        return body


def respond_with_json(
    status_code: int,
    content: Any,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Write ``content`` as JSON with the given status."""
    if isinstance(content, (ErrorResponse, SuccessResponse)):
        body = content.to_body()
    else:
        body = jsonable_encoder(content)
    return JSONResponse(status_code=status_code, content=body, headers=headers)


def respond_with_error(
    status_code: int,
    error: Exception | str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    envelope = ErrorResponse(
        error=str(error),
        message=message,
        code=status_code,
        details=details,
    )
    return respond_with_json(status_code, envelope, headers=headers)


def respond_with_api_error(exc: ApiError) -> JSONResponse:
    """Convert an ApiError into its envelope."""
    return respond_with_error(exc.status_code, exc, exc.message, details=exc.details)


def respond_with_validation_error(error: Exception | str) -> JSONResponse:
    return respond_with_error(status.HTTP_400_BAD_REQUEST, error, "Validation failed")


def respond_with_validation_errors(errors: Sequence[FieldError]) -> JSONResponse:
    return respond_with_api_error(validation_failed(errors))


def respond_not_found(resource: str) -> JSONResponse:
    return respond_with_error(
        status.HTTP_404_NOT_FOUND,
        f"{resource} not found",
        "Resource not found",
    )


def respond_with_internal_error() -> JSONResponse:
    """Generic 500. The underlying fault is logged, never returned."""
    return respond_with_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal server error",
        "Internal server error",
    )


def respond_with_data(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return respond_with_json(status_code, SuccessResponse(data=data))


def respond_created(data: Any) -> JSONResponse:
    return respond_with_data(data, status_code=status.HTTP_201_CREATED)


def respond_with_message(message: str) -> JSONResponse:
    return respond_with_json(status.HTTP_200_OK, SuccessResponse(message=message))


def validation_failed(errors: Sequence[FieldError]) -> ValidationError:
    """Build a ValidationError whose details list every failing field."""
    summary = f"validation failed: {errors[0].message}" if errors else "validation failed"
    return ValidationError(
        summary,
        details={
            "validation_errors": [
                error.model_dump(mode="json", exclude_none=True) for error in errors
            ]
        },
    )
