"""Correlation fields carried by probes.

A probe bound to an ObservationContext adds the context's fields to every
event it emits, so a gateway log line and the backend's log line for the
same request share ``request_id`` and ``tenant_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Request-scoped metadata for probe events.

    Attributes:
        request_id: Value of X-Request-ID for the request being handled.
        tenant_id: X-Tenant-ID as received; not necessarily validated.
        user_id: X-User-Email as received.
        service: Backend or service the event concerns.
        extra: Any other fields to attach.

    Example:
        probe = DefaultProxyProbe().with_context(
            ObservationContext(request_id="req-123", service="team-service")
        )
    """

    request_id: str | None = None
    user_id: str | None = None
    tenant_id: str | None = None
    service: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Fields to log; unset ones are left out."""
        named = {
            "request_id": self.request_id,
            "user_id": self.user_id,
            "tenant_id": self.tenant_id,
            "service": self.service,
        }
        result = {key: value for key, value in named.items() if value is not None}
        result.update(self.extra)
        return result

    def with_service(self, service: str) -> ObservationContext:
        return replace(self, service=service)

    def with_extra(self, **kwargs: Any) -> ObservationContext:
        return replace(self, extra={**self.extra, **kwargs})
