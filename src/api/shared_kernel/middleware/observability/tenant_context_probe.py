"""Probe for resolving tenant identity from request headers.

Each rejected request produces exactly one warning naming the path and the
header at fault. Successful resolution is logged at debug level only.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from infrastructure.observability.context import ObservationContext


class TenantContextProbe(Protocol):
    def tenant_resolved(self, tenant_id: str, user_id: str) -> None: ...

    def tenant_header_missing(self, path: str) -> None: ...

    def invalid_tenant_id_format(self, raw_value: str, path: str) -> None: ...

    def user_header_missing(self, tenant_id: str, path: str) -> None:
        """Only emitted when the user header is configured as required."""
        ...

    def default_user_assigned(self, tenant_id: str, user_id: str) -> None: ...

    def with_context(self, context: ObservationContext) -> TenantContextProbe: ...


class DefaultTenantContextProbe:
    """structlog implementation of TenantContextProbe."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantContextProbe:
        return DefaultTenantContextProbe(logger=self._logger, context=context)

    def _rejected(self, event: str, path: str, **fields: Any) -> None:
        self._logger.warning(event, http_path=path, **fields, **self._get_context_kwargs())

    def tenant_resolved(self, tenant_id: str, user_id: str) -> None:
        self._logger.debug(
            "tenant_context_resolved",
            tenant_id=tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )

    def tenant_header_missing(self, path: str) -> None:
        self._rejected(
            "tenant_context_header_missing",
            path,
            message="X-Tenant-ID header is required",
        )

    def invalid_tenant_id_format(self, raw_value: str, path: str) -> None:
        self._rejected("tenant_context_invalid_format", path, raw_value=raw_value)

    def user_header_missing(self, tenant_id: str, path: str) -> None:
        self._rejected("tenant_context_user_header_missing", path, tenant_id=tenant_id)

    def default_user_assigned(self, tenant_id: str, user_id: str) -> None:
        self._logger.debug(
            "tenant_context_default_user_assigned",
            tenant_id=tenant_id,
            user_id=user_id,
            **self._get_context_kwargs(),
        )
