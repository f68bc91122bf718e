"""Domain probe for readiness evaluation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class HealthProbe(Protocol):
    """Domain probe for dependency health checks."""

    def dependency_check_failed(self, name: str, error: Exception) -> None:
        """Record that a dependency check raised."""
        ...

    def dependency_check_timed_out(self, name: str, timeout: float) -> None:
        """Record that a dependency check exceeded its deadline."""
        ...

    def readiness_evaluated(self, ready: bool, check_count: int) -> None:
        """Record the aggregated readiness outcome."""
        ...

    def with_context(self, context: ObservationContext) -> HealthProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultHealthProbe:
    """Default implementation of HealthProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultHealthProbe:
        """Create a new probe with observation context bound."""
        return DefaultHealthProbe(logger=self._logger, context=context)

    def dependency_check_failed(self, name: str, error: Exception) -> None:
        self._logger.warning(
            "dependency_check_failed",
            dependency=name,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def dependency_check_timed_out(self, name: str, timeout: float) -> None:
        self._logger.warning(
            "dependency_check_timed_out",
            dependency=name,
            timeout_seconds=timeout,
            **self._get_context_kwargs(),
        )

    def readiness_evaluated(self, ready: bool, check_count: int) -> None:
        self._logger.debug(
            "readiness_evaluated",
            ready=ready,
            check_count=check_count,
            **self._get_context_kwargs(),
        )
