"""Fixtures for service template tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_asyncio

from service_template import ServiceTemplate
from shared_kernel.storage import PoolStats


class StubStorage:
    """In-memory StorageHandle with a switchable health check."""

    def __init__(self, fail_with: Exception | None = None):
        self.fail_with = fail_with
        self.closed = False

    async def health_check(self, timeout: float) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def stats(self) -> PoolStats:
        return PoolStats(total=3, idle=2, used=1)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def template(server_settings, tenant_settings) -> ServiceTemplate:
    return ServiceTemplate(
        "test-service",
        "1.2.3",
        server_settings=server_settings,
        tenant_settings=tenant_settings,
    )


@pytest.fixture
def stub_storage() -> StubStorage:
    return StubStorage()


@pytest_asyncio.fixture
async def client_for():
    """Build an HTTP client for a template's application."""
    clients: list[httpx.AsyncClient] = []

    def _make(template: ServiceTemplate) -> httpx.AsyncClient:
        client = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=template.app),
            base_url="http://test",
        )
        clients.append(client)
        return client

    yield _make

    for client in clients:
        await client.aclose()


@pytest_asyncio.fixture
async def client(template, client_for) -> AsyncIterator[httpx.AsyncClient]:
    yield client_for(template)
