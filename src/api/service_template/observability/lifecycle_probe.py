"""Domain probe for service assembly and server lifecycle.

Following Domain-Oriented Observability patterns, this probe captures
route registration while a service is assembled and the state transitions
of the server that runs it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class LifecycleProbe(Protocol):
    """Domain probe for service lifecycle operations."""

    def route_registered(self, service_name: str, method: str, path: str) -> None:
        """Record that a route was added to the service route table."""
        ...

    def readiness_replaced(self, service_name: str, check_count: int) -> None:
        """Record that /readiness was rebound to include dependency checks."""
        ...

    def server_starting(self, service_name: str, host: str, port: int) -> None:
        """Record that the server is about to bind its listener."""
        ...

    def server_started(self, service_name: str, host: str, port: int) -> None:
        """Record that the server is bound and accepting connections."""
        ...

    def shutdown_started(self, service_name: str, timeout_seconds: float) -> None:
        """Record that graceful shutdown has begun."""
        ...

    def server_stopped(
        self, service_name: str, duration_seconds: float, forced: bool
    ) -> None:
        """Record that the server has stopped."""
        ...

    def server_failed(self, service_name: str, error: BaseException) -> None:
        """Record that the server could not start or crashed while running."""
        ...

    def with_context(self, context: ObservationContext) -> LifecycleProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultLifecycleProbe:
    """Default implementation of LifecycleProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultLifecycleProbe:
        """Create a new probe with observation context bound."""
        return DefaultLifecycleProbe(logger=self._logger, context=context)

    def route_registered(self, service_name: str, method: str, path: str) -> None:
        self._logger.debug(
            "route_registered",
            service_name=service_name,
            http_method=method,
            http_path=path,
            **self._get_context_kwargs(),
        )

    def readiness_replaced(self, service_name: str, check_count: int) -> None:
        self._logger.info(
            "readiness_route_replaced",
            service_name=service_name,
            check_count=check_count,
            **self._get_context_kwargs(),
        )

    def server_starting(self, service_name: str, host: str, port: int) -> None:
        self._logger.info(
            "server_starting",
            service_name=service_name,
            host=host,
            port=port,
            **self._get_context_kwargs(),
        )

    def server_started(self, service_name: str, host: str, port: int) -> None:
        self._logger.info(
            "server_started",
            service_name=service_name,
            host=host,
            port=port,
            **self._get_context_kwargs(),
        )

    def shutdown_started(self, service_name: str, timeout_seconds: float) -> None:
        self._logger.info(
            "server_shutdown_started",
            service_name=service_name,
            timeout_seconds=timeout_seconds,
            **self._get_context_kwargs(),
        )

    def server_stopped(
        self, service_name: str, duration_seconds: float, forced: bool
    ) -> None:
        log = self._logger.warning if forced else self._logger.info
        log(
            "server_stopped",
            service_name=service_name,
            duration_seconds=round(duration_seconds, 3),
            forced=forced,
            **self._get_context_kwargs(),
        )

    def server_failed(self, service_name: str, error: BaseException) -> None:
        self._logger.error(
            "server_failed",
            service_name=service_name,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
