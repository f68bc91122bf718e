"""Domain probe for request handling.

Following Domain-Oriented Observability patterns, this probe captures the
per-request events emitted by the default middleware chain and the error
handlers: access log lines, converted API errors and unhandled faults.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class RequestProbe(Protocol):
    """Domain probe for request handling operations."""

    def request_completed(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        client: str | None,
    ) -> None:
        """Record that a request produced a response."""
        ...

    def request_failed(
        self,
        method: str,
        path: str,
        duration_ms: float,
        client: str | None,
        error: Exception,
    ) -> None:
        """Record that a request raised before producing a response."""
        ...

    def unhandled_error(
        self,
        method: str,
        path: str,
        request_id: str | None,
        error: Exception,
    ) -> None:
        """Record that the recovery barrier converted a fault into a 500."""
        ...

    def api_error_returned(
        self,
        method: str,
        path: str,
        status_code: int,
        error: Exception,
    ) -> None:
        """Record that an error was converted into an error envelope."""
        ...

    def with_context(self, context: ObservationContext) -> RequestProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultRequestProbe:
    """Default implementation of RequestProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultRequestProbe:
        """Create a new probe with observation context bound."""
        return DefaultRequestProbe(logger=self._logger, context=context)

    def request_completed(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        client: str | None,
    ) -> None:
        self._logger.info(
            "http_request_completed",
            http_method=method,
            http_path=path,
            http_status=status_code,
            duration_ms=round(duration_ms, 2),
            client=client,
            **self._get_context_kwargs(),
        )

    def request_failed(
        self,
        method: str,
        path: str,
        duration_ms: float,
        client: str | None,
        error: Exception,
    ) -> None:
        self._logger.info(
            "http_request_completed",
            http_method=method,
            http_path=path,
            http_status=500,
            duration_ms=round(duration_ms, 2),
            client=client,
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def unhandled_error(
        self,
        method: str,
        path: str,
        request_id: str | None,
        error: Exception,
    ) -> None:
        self._logger.error(
            "http_request_unhandled_error",
            http_method=method,
            http_path=path,
            request_id=request_id,
            error=str(error),
            error_type=type(error).__name__,
            exc_info=error,
            **self._get_context_kwargs(),
        )

    def api_error_returned(
        self,
        method: str,
        path: str,
        status_code: int,
        error: Exception,
    ) -> None:
        log = self._logger.error if status_code >= 500 else self._logger.warning
        log(
            "http_request_error_response",
            http_method=method,
            http_path=path,
            http_status=status_code,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
