"""Integration test fixtures for tests that bind real sockets.

Servers listen on 127.0.0.1 with an ephemeral port and are stopped at the
end of each test.
"""

from __future__ import annotations

import asyncio
import socket
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import pytest
from starlette.types import ASGIApp

from service_template.lifecycle import ServiceServer


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (binds local sockets)",
    )


@asynccontextmanager
async def _serving(
    app: ASGIApp,
    *,
    service_name: str = "integration",
    shutdown_timeout: float = 5.0,
) -> AsyncIterator[ServiceServer]:
    """Run ``app`` on an ephemeral port until the block exits."""
    server = ServiceServer(
        app,
        service_name=service_name,
        host="127.0.0.1",
        port=0,
        shutdown_timeout=shutdown_timeout,
    )
    task = asyncio.create_task(server.run_until_stopped())
    while not server.started:
        if task.done():
            task.result()
        await asyncio.sleep(0.01)
    try:
        yield server
    finally:
        server.request_shutdown()
        await task


@pytest.fixture
def serve():
    """Factory for running an app on an ephemeral port inside an async with."""
    return _serving


@pytest.fixture
def closed_port() -> int:
    """A local port nothing is listening on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def http_client_factory():
    def _make(**kwargs) -> httpx.AsyncClient:
        return httpx.AsyncClient(trust_env=False, **kwargs)

    return _make
