"""Fixtures for gateway tests: an in-process backend behind the proxy."""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse

from gateway import create_gateway
from service_template import ServiceTemplate

GATEWAY_URL = "http://gateway.local"


def build_backend() -> FastAPI:
    """A backend that echoes what it received."""
    backend = FastAPI()

    @backend.get("/api/v1/teams/stream")
    async def stream():
        async def chunks():
            for i in range(5):
                yield f"chunk-{i}\n".encode()

        return StreamingResponse(chunks(), media_type="text/plain")

    @backend.api_route(
        "/{path:path}",
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"],
    )
    async def echo(request: Request, path: str):
        body = await request.body()
        response = JSONResponse(
            {
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query,
                "headers": dict(request.headers),
                "body": body.decode(),
            },
            status_code=201 if request.method == "POST" else 200,
            headers={"X-Backend": request.url.hostname or "", "Keep-Alive": "timeout=5"},
        )
        response.headers.append("Set-Cookie", "a=1")
        response.headers.append("Set-Cookie", "b=2")
        return response

    return backend


@pytest.fixture
def backend() -> FastAPI:
    return build_backend()


@pytest_asyncio.fixture
async def upstream_client(backend):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=backend)) as client:
        yield client


@pytest.fixture
def gateway(server_settings, proxy_settings, tenant_settings, upstream_client) -> ServiceTemplate:
    return create_gateway(
        server_settings.model_copy(update={"service_name": "gateway-test"}),
        proxy_settings,
        tenant_settings=tenant_settings,
        client=upstream_client,
    )


@pytest_asyncio.fixture
async def gateway_client(gateway):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=gateway.app),
        base_url=GATEWAY_URL,
    ) as client:
        yield client
