"""Integration tests for the gateway forwarding over real connections."""

import asyncio

import httpx
import pytest
from fastapi import Request
from fastapi.responses import StreamingResponse

from gateway import create_gateway
from infrastructure.settings import ProxySettings, ServerSettings, TenantSettings
from service_template import ResourceTemplate, RouteBundle
from service_template.tenant import with_tenant_validation
from shared_kernel.http import parse_pagination_params, respond_created, respond_with_data
from shared_kernel.middleware.tenant_context import TenantContext

pytestmark = pytest.mark.integration

TENANT_ID = "6f1c2b9e-7d8a-4c3b-9e2f-1a2b3c4d5e6f"


def team_service() -> ResourceTemplate:
    """A team backend built from the resource template."""
    template = ResourceTemplate(
        "team-service",
        "teams",
        server_settings=ServerSettings(service_name="team-service", host="127.0.0.1", port=0),
        tenant_settings=TenantSettings(),
    )

    @with_tenant_validation
    async def list_teams(request: Request, tenant: TenantContext):
        page = parse_pagination_params(request)
        return respond_with_data(
            {
                "tenant_id": str(tenant.tenant_id),
                "user_id": tenant.user_id,
                "limit": page.limit,
                "offset": page.offset,
                "forwarded_for": request.headers.get("x-forwarded-for"),
            }
        )

    async def create_team(request: Request):
        return respond_created(await request.json())

    async def get_team(id: str):
        return respond_with_data({"id": id})

    template.register_resource_handlers(
        RouteBundle(
            create=create_team,
            list=list_teams,
            get=get_team,
            update=get_team,
            delete=get_team,
        )
    )

    async def export(request: Request):
        async def rows():
            for i in range(3):
                yield f"row-{i}\n".encode()
                await asyncio.sleep(0.05)

        return StreamingResponse(rows(), media_type="text/csv")

    template.add_route("GET", "/api/v1/teams-export", export)
    return template


def gateway_for(backend_url: str, timeout: float = 5.0):
    return create_gateway(
        ServerSettings(service_name="api-gateway", host="127.0.0.1", port=0),
        ProxySettings(
            timeout_seconds=timeout,
            targets=[
                {"name": "team-service", "path_prefix": "/api/v1/teams", "base_url": backend_url},
                {
                    "name": "team-export",
                    "path_prefix": "/api/v1/teams-export",
                    "base_url": backend_url,
                },
            ],
        ),
        tenant_settings=TenantSettings(),
    )


class TestGatewayOverSockets:
    """End to end: client -> gateway -> team service, all on real listeners."""

    @pytest.mark.asyncio
    async def test_list_teams_through_gateway(self, serve, http_client_factory):
        async with serve(team_service().app) as backend:
            gateway = gateway_for(f"http://127.0.0.1:{backend.bound_port}")
            async with serve(gateway.app) as edge:
                async with http_client_factory(
                    base_url=f"http://127.0.0.1:{edge.bound_port}"
                ) as client:
                    response = await client.get(
                        "/api/v1/teams?limit=50&offset=10",
                        headers={"X-Tenant-ID": TENANT_ID, "X-User-Email": "a@b.c"},
                    )

        data = response.json()["data"]
        assert response.status_code == 200
        assert data["tenant_id"] == TENANT_ID
        assert data["user_id"] == "a@b.c"
        assert (data["limit"], data["offset"]) == (50, 10)
        assert data["forwarded_for"] == "127.0.0.1"

    @pytest.mark.asyncio
    async def test_backend_errors_pass_through(self, serve, http_client_factory):
        async with serve(team_service().app) as backend:
            gateway = gateway_for(f"http://127.0.0.1:{backend.bound_port}")
            async with serve(gateway.app) as edge:
                async with http_client_factory(
                    base_url=f"http://127.0.0.1:{edge.bound_port}"
                ) as client:
                    response = await client.get(
                        "/api/v1/teams?limit=5000", headers={"X-Tenant-ID": TENANT_ID}
                    )

        assert response.status_code == 400
        assert response.json()["error"] == (
            "invalid limit parameter: must be between 1 and 1000"
        )

    @pytest.mark.asyncio
    async def test_streamed_body_arrives_in_pieces(self, serve, http_client_factory):
        async with serve(team_service().app) as backend:
            gateway = gateway_for(f"http://127.0.0.1:{backend.bound_port}")
            async with serve(gateway.app) as edge:
                async with http_client_factory(
                    base_url=f"http://127.0.0.1:{edge.bound_port}"
                ) as client:
                    async with client.stream("GET", "/api/v1/teams-export") as response:
                        chunks = [chunk async for chunk in response.aiter_raw()]

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert b"".join(chunks) == b"row-0\nrow-1\nrow-2\n"

    @pytest.mark.asyncio
    async def test_unreachable_backend_is_503(
        self, serve, http_client_factory, closed_port
    ):
        gateway = gateway_for(f"http://127.0.0.1:{closed_port}")
        async with serve(gateway.app) as edge:
            async with http_client_factory(
                base_url=f"http://127.0.0.1:{edge.bound_port}"
            ) as client:
                response = await client.get("/api/v1/teams")

        assert response.status_code == 503
        assert response.json()["code"] == 503
