"""Unit tests for tenant context resolution."""

from typing import Annotated
from unittest.mock import MagicMock
from uuid import UUID

import pytest
from fastapi import Depends
from starlette.requests import Request

from infrastructure.settings import TenantSettings
from service_template import ServiceTemplate
from service_template.tenant import (
    extract_tenant_context,
    get_tenant_from_request,
    require_tenant_context,
    with_tenant_validation,
)
from shared_kernel.errors import InvalidTenantError
from shared_kernel.http.envelope import respond_with_data
from shared_kernel.middleware.observability import TenantContextProbe
from shared_kernel.middleware.tenant_context import TenantContext

TENANT_ID = "6f1c2b9e-7d8a-4c3b-9e2f-1a2b3c4d5e6f"


def make_request(headers: dict[str, str]) -> Request:
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/api/v1/teams",
            "query_string": b"",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        }
    )


class TestExtractTenantContext:
    """Tests for header parsing."""

    def test_resolves_tenant_and_user(self):
        probe = MagicMock(spec=TenantContextProbe)
        request = make_request({"X-Tenant-ID": TENANT_ID, "X-User-Email": "a@b.c"})

        ctx = extract_tenant_context(request, probe=probe)

        assert ctx == TenantContext(tenant_id=UUID(TENANT_ID), user_id="a@b.c")
        probe.tenant_resolved.assert_called_once_with(tenant_id=TENANT_ID, user_id="a@b.c")

    def test_missing_user_falls_back_to_default(self):
        probe = MagicMock(spec=TenantContextProbe)
        request = make_request({"X-Tenant-ID": TENANT_ID})

        ctx = extract_tenant_context(request, default_user_id="anonymous", probe=probe)

        assert ctx.user_id == "anonymous"
        probe.default_user_assigned.assert_called_once()

    def test_missing_user_rejected_when_required(self):
        request = make_request({"X-Tenant-ID": TENANT_ID})

        with pytest.raises(InvalidTenantError) as exc_info:
            extract_tenant_context(request, require_user=True)

        assert "X-User-Email" in str(exc_info.value)

    def test_missing_tenant_header(self):
        probe = MagicMock(spec=TenantContextProbe)

        with pytest.raises(InvalidTenantError) as exc_info:
            extract_tenant_context(make_request({}), probe=probe)

        assert str(exc_info.value) == "missing X-Tenant-ID header"
        probe.tenant_header_missing.assert_called_once_with(path="/api/v1/teams")

    def test_blank_tenant_header_is_missing(self):
        with pytest.raises(InvalidTenantError):
            extract_tenant_context(make_request({"X-Tenant-ID": "   "}))

    @pytest.mark.parametrize("raw", ["not-a-uuid", "1234", TENANT_ID + "0"])
    def test_malformed_tenant_id(self, raw):
        with pytest.raises(InvalidTenantError) as exc_info:
            extract_tenant_context(make_request({"X-Tenant-ID": raw}))

        assert "invalid X-Tenant-ID format" in str(exc_info.value)


@pytest.fixture
def calls() -> list[TenantContext]:
    return []


@pytest.fixture
def tenant_template(template, calls) -> ServiceTemplate:
    @with_tenant_validation
    async def list_teams(request: Request, tenant: TenantContext):
        """List teams for the tenant."""
        calls.append(tenant)
        return respond_with_data(
            {"tenant_id": str(tenant.tenant_id), "user_id": tenant.user_id}
        )

    async def get_team(
        id: str,
        tenant: Annotated[TenantContext, Depends(require_tenant_context)],
    ):
        calls.append(tenant)
        return respond_with_data({"id": id, "tenant_id": str(tenant.tenant_id)})

    async def unscoped(request: Request):
        get_tenant_from_request(request)
        return respond_with_data({})

    template.add_route("GET", "/api/v1/teams", list_teams)
    template.add_route("GET", "/api/v1/teams/{id}", get_team)
    template.add_route("GET", "/unscoped", unscoped)
    return template


class TestWithTenantValidation:
    """Tests for tenant-scoped handlers served through a template."""

    @pytest.mark.asyncio
    async def test_handler_receives_context(
        self, tenant_template, client_for, calls, tenant_headers
    ):
        response = await client_for(tenant_template).get(
            "/api/v1/teams", headers=tenant_headers
        )

        assert response.status_code == 200
        assert response.json()["data"] == {
            "tenant_id": TENANT_ID,
            "user_id": "alice@example.com",
        }
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_missing_header_never_reaches_handler(
        self, tenant_template, client_for, calls
    ):
        response = await client_for(tenant_template).get("/api/v1/teams")

        body = response.json()
        assert response.status_code == 400
        assert body["code"] == 400
        assert body["message"] == "Invalid tenant context"
        assert body["error"] == "missing X-Tenant-ID header"
        assert calls == []

    @pytest.mark.asyncio
    async def test_invalid_uuid_never_reaches_handler(
        self, tenant_template, client_for, calls
    ):
        response = await client_for(tenant_template).get(
            "/api/v1/teams", headers={"X-Tenant-ID": "tenant-1"}
        )

        assert response.status_code == 400
        assert calls == []

    @pytest.mark.asyncio
    async def test_default_user_comes_from_settings(
        self, server_settings, client_for, calls
    ):
        template = ServiceTemplate(
            "svc",
            server_settings=server_settings,
            tenant_settings=TenantSettings(default_user_id="anonymous"),
        )

        @with_tenant_validation
        async def handler(request: Request, tenant: TenantContext):
            return respond_with_data({"user_id": tenant.user_id})

        template.add_route("GET", "/x", handler)
        response = await client_for(template).get("/x", headers={"X-Tenant-ID": TENANT_ID})

        assert response.json()["data"] == {"user_id": "anonymous"}

    @pytest.mark.asyncio
    async def test_required_user_header(self, server_settings, client_for):
        template = ServiceTemplate(
            "svc",
            server_settings=server_settings,
            tenant_settings=TenantSettings(require_user_header=True),
        )

        @with_tenant_validation
        async def handler(request: Request, tenant: TenantContext):
            return respond_with_data({})

        template.add_route("GET", "/x", handler)
        response = await client_for(template).get("/x", headers={"X-Tenant-ID": TENANT_ID})

        assert response.status_code == 400

    def test_wrapper_keeps_handler_identity(self):
        async def list_teams(request: Request, tenant: TenantContext):
            """List teams."""

        wrapped = with_tenant_validation(list_teams)

        assert wrapped.__name__ == "list_teams"
        assert wrapped.__doc__ == "List teams."


class TestRequireTenantContext:
    """Tests for the dependency form."""

    @pytest.mark.asyncio
    async def test_dependency_injects_context(
        self, tenant_template, client_for, calls, tenant_headers
    ):
        response = await client_for(tenant_template).get(
            "/api/v1/teams/42", headers=tenant_headers
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"id": "42", "tenant_id": TENANT_ID}
        assert calls[0].user_id == "alice@example.com"

    @pytest.mark.asyncio
    async def test_dependency_rejects_missing_header(
        self, tenant_template, client_for, calls
    ):
        response = await client_for(tenant_template).get("/api/v1/teams/42")

        assert response.status_code == 400
        assert calls == []


class TestGetTenantFromRequest:
    @pytest.mark.asyncio
    async def test_unvalidated_route_is_a_server_error(self, tenant_template, client_for):
        """Reading the tenant on an unscoped route is a programming error."""
        response = await client_for(tenant_template).get(
            "/unscoped", headers={"X-Tenant-ID": TENANT_ID}
        )

        assert response.status_code == 500
        assert response.json()["code"] == 500
