"""Domain probe for application startup events.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events while a process is being assembled, before the
server starts accepting traffic.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class StartupProbe(Protocol):
    """Domain probe for application startup operations."""

    def proxy_target_registered(self, name: str, path_prefix: str, base_url: str) -> None:
        """Record that a backend was added to the gateway routing table."""
        ...

    def gateway_assembled(self, service_name: str, target_count: int) -> None:
        """Record that the gateway application is fully assembled."""
        ...

    def storage_attached(self, service_name: str) -> None:
        """Record that a storage collaborator was attached to a service."""
        ...

    def startup_failed(self, error: Exception) -> None:
        """Record that the process could not be assembled and will exit."""
        ...

    def with_context(self, context: ObservationContext) -> StartupProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStartupProbe:
    """Default implementation of StartupProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultStartupProbe:
        """Create a new probe with observation context bound."""
        return DefaultStartupProbe(logger=self._logger, context=context)

    def proxy_target_registered(self, name: str, path_prefix: str, base_url: str) -> None:
        self._logger.info(
            "proxy_target_registered",
            target=name,
            path_prefix=path_prefix,
            base_url=base_url,
            **self._get_context_kwargs(),
        )

    def gateway_assembled(self, service_name: str, target_count: int) -> None:
        self._logger.info(
            "gateway_assembled",
            service_name=service_name,
            target_count=target_count,
            **self._get_context_kwargs(),
        )

    def storage_attached(self, service_name: str) -> None:
        self._logger.info(
            "storage_attached",
            service_name=service_name,
            **self._get_context_kwargs(),
        )

    def startup_failed(self, error: Exception) -> None:
        self._logger.error(
            "startup_failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
