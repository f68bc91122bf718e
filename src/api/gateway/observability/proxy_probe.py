"""Domain probe for reverse proxy operations.

Following Domain-Oriented Observability patterns, this probe captures the
routing decision for each request and the outcome of the upstream call.

See: https://martinfowler.com/articles/domain-oriented-observability.html
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class ProxyProbe(Protocol):
    """Domain probe for reverse proxy operations."""

    def target_shadowed(self, name: str, path_prefix: str, shadowed_by: str) -> None:
        """Record that a target can never match because an earlier one owns its prefix."""
        ...

    def no_target_matched(self, method: str, path: str) -> None:
        """Record that no backend is registered for the request path."""
        ...

    def target_misconfigured(self, name: str, base_url: str, reason: str) -> None:
        """Record that the matched target's base URL cannot be used."""
        ...

    def request_forwarded(self, target: str, method: str, path: str, url: str) -> None:
        """Record that a request is being sent to a backend."""
        ...

    def upstream_responded(
        self, target: str, method: str, path: str, status_code: int, duration_ms: float
    ) -> None:
        """Record that the backend returned response headers."""
        ...

    def upstream_unavailable(self, target: str, url: str, error: Exception) -> None:
        """Record that the backend could not be reached."""
        ...

    def upstream_timed_out(self, target: str, url: str, timeout: float) -> None:
        """Record that the backend did not respond within the deadline."""
        ...

    def stream_interrupted(self, target: str, error: Exception) -> None:
        """Record that the backend failed after the response had started."""
        ...

    def client_disconnected(self, target: str, method: str, path: str) -> None:
        """Record that the client went away while its body was being forwarded."""
        ...

    def with_context(self, context: ObservationContext) -> ProxyProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultProxyProbe:
    """Default implementation of ProxyProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultProxyProbe:
        """Create a new probe with observation context bound."""
        return DefaultProxyProbe(logger=self._logger, context=context)

    def target_shadowed(self, name: str, path_prefix: str, shadowed_by: str) -> None:
        self._logger.warning(
            "proxy_target_shadowed",
            target=name,
            path_prefix=path_prefix,
            shadowed_by=shadowed_by,
            **self._get_context_kwargs(),
        )

    def no_target_matched(self, method: str, path: str) -> None:
        self._logger.warning(
            "proxy_no_target_matched",
            http_method=method,
            http_path=path,
            **self._get_context_kwargs(),
        )

    def target_misconfigured(self, name: str, base_url: str, reason: str) -> None:
        self._logger.error(
            "proxy_target_misconfigured",
            target=name,
            base_url=base_url,
            reason=reason,
            **self._get_context_kwargs(),
        )

    def request_forwarded(self, target: str, method: str, path: str, url: str) -> None:
        self._logger.debug(
            "proxy_request_forwarded",
            target=target,
            http_method=method,
            http_path=path,
            proxy_url=url,
            **self._get_context_kwargs(),
        )

    def upstream_responded(
        self, target: str, method: str, path: str, status_code: int, duration_ms: float
    ) -> None:
        self._logger.debug(
            "proxy_upstream_responded",
            target=target,
            http_method=method,
            http_path=path,
            http_status=status_code,
            duration_ms=round(duration_ms, 2),
            **self._get_context_kwargs(),
        )

    def upstream_unavailable(self, target: str, url: str, error: Exception) -> None:
        self._logger.error(
            "proxy_upstream_unavailable",
            target=target,
            proxy_url=url,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def upstream_timed_out(self, target: str, url: str, timeout: float) -> None:
        self._logger.error(
            "proxy_upstream_timed_out",
            target=target,
            proxy_url=url,
            timeout_seconds=timeout,
            **self._get_context_kwargs(),
        )

    def stream_interrupted(self, target: str, error: Exception) -> None:
        self._logger.error(
            "proxy_stream_interrupted",
            target=target,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def client_disconnected(self, target: str, method: str, path: str) -> None:
        self._logger.info(
            "proxy_client_disconnected",
            target=target,
            http_method=method,
            http_path=path,
            **self._get_context_kwargs(),
        )
