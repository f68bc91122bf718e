"""Domain probe for the PostgreSQL storage handle.

Readiness and metrics only ever see a StorageHandle; this probe reports what
happened underneath it: the pool coming up, running dry, failing a ping and
being released at shutdown.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext
    from shared_kernel.storage import PoolStats


class StoragePoolProbe(Protocol):
    """Domain probe for storage pool operations."""

    def pool_opened(self, target: str, min_connections: int, max_connections: int) -> None:
        """Record that the pool connected to ``target``."""
        ...

    def pool_open_failed(self, target: str, error: Exception) -> None:
        """Record that the pool could not be created."""
        ...

    def pool_exhausted(self, max_connections: int) -> None:
        """Record that every pooled connection was checked out."""
        ...

    def connection_release_failed(self, error: Exception) -> None:
        """Record that a connection could not be handed back and was dropped."""
        ...

    def ping_failed(self, error: Exception) -> None:
        """Record that the readiness ping was answered with an error."""
        ...

    def ping_timed_out(self, timeout: float) -> None:
        """Record that the readiness ping missed its deadline."""
        ...

    def pool_closed(self, stats: PoolStats) -> None:
        """Record that every pooled connection was released."""
        ...

    def with_context(self, context: ObservationContext) -> StoragePoolProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultStoragePoolProbe:
    """Default implementation of StoragePoolProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultStoragePoolProbe:
        return DefaultStoragePoolProbe(logger=self._logger, context=context)

    def pool_opened(self, target: str, min_connections: int, max_connections: int) -> None:
        self._logger.info(
            "storage_pool_opened",
            storage_target=target,
            min_connections=min_connections,
            max_connections=max_connections,
            **self._get_context_kwargs(),
        )

    def pool_open_failed(self, target: str, error: Exception) -> None:
        self._logger.error(
            "storage_pool_open_failed",
            storage_target=target,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def pool_exhausted(self, max_connections: int) -> None:
        self._logger.warning(
            "storage_pool_exhausted",
            max_connections=max_connections,
            **self._get_context_kwargs(),
        )

    def connection_release_failed(self, error: Exception) -> None:
        self._logger.error(
            "storage_connection_release_failed",
            error=str(error),
            **self._get_context_kwargs(),
        )

    def ping_failed(self, error: Exception) -> None:
        self._logger.warning(
            "storage_ping_failed",
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def ping_timed_out(self, timeout: float) -> None:
        self._logger.warning(
            "storage_ping_timed_out",
            timeout_seconds=timeout,
            **self._get_context_kwargs(),
        )

    def pool_closed(self, stats: PoolStats) -> None:
        self._logger.info(
            "storage_pool_closed",
            **stats.as_dict(),
            **self._get_context_kwargs(),
        )
