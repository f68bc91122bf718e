"""Error taxonomy shared by every service built on the platform.

Each exception knows the HTTP status it maps to and the human-readable
envelope message. The error handlers registered by the service template
turn them into error envelopes at the request boundary; anything that is
not an ApiError is an internal fault and is handled by the recovery
middleware instead.
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Base class for errors that map onto an error envelope.

    Attributes:
        status_code: HTTP status returned to the caller.
        message: Envelope ``message`` (what went wrong, for humans).
        details: Optional structured ``details`` for the envelope.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(
        self,
        error: str,
        *,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(error)
        self.message = message or self.default_message
        self.details = details


class ClientError(ApiError):
    """The caller sent something invalid and can retry after correcting it."""

    status_code = 400
    default_message = "Bad request"


class InvalidTenantError(ClientError):
    """The tenant headers are absent or malformed."""

    default_message = "Invalid tenant context"


class ValidationError(ClientError):
    """Query parameters or body failed validation."""

    default_message = "Validation failed"


class NotFoundError(ApiError):
    status_code = 404
    default_message = "Resource not found"


class ServiceNotFoundError(NotFoundError):
    """No gateway target matches the request path."""

    default_message = "Service not found"


class UpstreamUnavailableError(ApiError):
    """A backend could not be reached in time. Retryable."""

    status_code = 503
    default_message = "Service Unavailable"


class MisconfigurationError(ApiError):
    """The server itself is set up incorrectly. Not retryable."""

    status_code = 500
    default_message = "Internal Server Error"


class TargetMisconfiguredError(MisconfigurationError):
    """A gateway target has a base URL that cannot be forwarded to."""


class MissingRouteHandlerError(MisconfigurationError):
    """A route bundle is missing one of its required handlers."""


class DuplicateRouteError(MisconfigurationError):
    """A method and path combination was registered twice."""


class RouteTableFrozenError(MisconfigurationError):
    """Routes were registered after the application was built."""


class ChainFrozenError(MisconfigurationError):
    """Middleware was added after the application was built."""


class MissingTenantContextError(MisconfigurationError):
    """A handler asked for a tenant on a route without tenant validation."""
