"""Main FastAPI application entry point.

Serves the API gateway: the standard operational endpoints plus a reverse
proxy that forwards every other request to the owning backend service.

Run with ``tenant-gateway`` (or ``python -m main`` from ``src/api``). The
module-level ``app`` can also be served by any ASGI server.
"""

from __future__ import annotations

import sys

import pydantic
from fastapi import FastAPI

from gateway import create_gateway
from infrastructure.logging import configure_logging
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_logging_settings
from service_template.lifecycle import ServerStartupError
from shared_kernel.errors import MisconfigurationError


def create_app() -> FastAPI:
    """Build the gateway ASGI application from environment settings."""
    return create_gateway().app


app = create_app()


def run() -> None:
    """Configure logging, assemble the gateway and serve until stopped.

    Exits with status 1 when the gateway cannot be assembled, its listener
    cannot be bound, or its lifespan startup fails.
    """
    configure_logging(get_logging_settings())
    probe = DefaultStartupProbe()

    try:
        gateway = create_gateway()
        gateway.build()
    except (MisconfigurationError, pydantic.ValidationError) as e:
        probe.startup_failed(e)
        sys.exit(1)

    try:
        gateway.serve()
    except ServerStartupError:
        sys.exit(1)


if __name__ == "__main__":
    run()
