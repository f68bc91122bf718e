"""Tenant context value object for resolved tenant identification.

This module contains the pure value object that represents a resolved
tenant context. It is framework-agnostic and contains no business logic,
making it safe for the shared kernel.

The actual resolution logic (header extraction, UUID validation) lives in
the service template's tenant module.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

TENANT_ID_HEADER = "X-Tenant-ID"
USER_EMAIL_HEADER = "X-User-Email"


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for the current request.

    Lives for exactly one request and is never persisted. Handlers receive
    it as an explicit argument, so internal APIs work with a UUID rather
    than the raw header string.

    Attributes:
        tenant_id: The validated tenant identifier.
        user_id: The acting user, from X-User-Email or the configured default.
    """

    tenant_id: UUID
    user_id: str
