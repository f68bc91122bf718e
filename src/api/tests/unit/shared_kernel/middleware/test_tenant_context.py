"""Unit tests for the TenantContext value object and its probe."""

from __future__ import annotations

import dataclasses
from unittest.mock import MagicMock
from uuid import UUID

import pytest
import structlog

from infrastructure.observability import ObservationContext
from shared_kernel.middleware.observability import DefaultTenantContextProbe
from shared_kernel.middleware.tenant_context import (
    TENANT_ID_HEADER,
    USER_EMAIL_HEADER,
    TenantContext,
)

TENANT = UUID("6f1c2b9e-7d8a-4c3b-9e2f-1a2b3c4d5e6f")


class TestTenantContext:
    """Tests for the TenantContext value object."""

    def test_holds_tenant_and_user(self) -> None:
        ctx = TenantContext(tenant_id=TENANT, user_id="alice@example.com")
        assert ctx.tenant_id == TENANT
        assert ctx.user_id == "alice@example.com"

    def test_is_immutable(self) -> None:
        """TenantContext should be frozen."""
        ctx = TenantContext(tenant_id=TENANT, user_id="system")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.user_id = "mallory"  # type: ignore[misc]

    def test_equality_is_by_value(self) -> None:
        assert TenantContext(TENANT, "system") == TenantContext(TENANT, "system")
        assert TenantContext(TENANT, "system") != TenantContext(TENANT, "alice")

    def test_header_names(self) -> None:
        assert TENANT_ID_HEADER == "X-Tenant-ID"
        assert USER_EMAIL_HEADER == "X-User-Email"


class TestDefaultTenantContextProbe:
    """Tests for the DefaultTenantContextProbe implementation."""

    def test_implements_protocol(self) -> None:
        """DefaultTenantContextProbe should implement TenantContextProbe protocol."""
        probe = DefaultTenantContextProbe()
        assert callable(probe.tenant_resolved)
        assert callable(probe.tenant_header_missing)
        assert callable(probe.invalid_tenant_id_format)
        assert callable(probe.user_header_missing)
        assert callable(probe.default_user_assigned)
        assert callable(probe.with_context)

    def test_with_context_returns_new_instance(self) -> None:
        """with_context should return a new probe instance with context bound."""
        probe = DefaultTenantContextProbe()
        context = ObservationContext(request_id="req-123", user_id="user-456")
        new_probe = probe.with_context(context)

        assert new_probe is not probe
        assert isinstance(new_probe, DefaultTenantContextProbe)

    def test_missing_header_logs_warning(self) -> None:
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenantContextProbe(logger=mock_logger)

        probe.tenant_header_missing(path="/api/v1/teams")

        mock_logger.warning.assert_called_once_with(
            "tenant_context_header_missing",
            http_path="/api/v1/teams",
            message="X-Tenant-ID header is required",
        )

    def test_invalid_format_logs_raw_value(self) -> None:
        mock_logger = MagicMock(spec=structlog.stdlib.BoundLogger)
        probe = DefaultTenantContextProbe(logger=mock_logger)

        probe.invalid_tenant_id_format(raw_value="not-a-uuid", path="/x")

        mock_logger.warning.assert_called_once_with(
            "tenant_context_invalid_format",
            raw_value="not-a-uuid",
            http_path="/x",
        )

    def test_probe_methods_do_not_raise(self) -> None:
        """All probe methods should execute without raising exceptions."""
        probe = DefaultTenantContextProbe()

        probe.tenant_resolved(tenant_id="t1", user_id="u1")
        probe.user_header_missing(tenant_id="t1", path="/x")
        probe.default_user_assigned(tenant_id="t1", user_id="system")
