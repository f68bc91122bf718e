"""Server process lifecycle.

``ServiceServer`` runs an ASGI application under uvicorn and tracks the
server state machine:

    created -> running -> shutting_down -> stopped

The server is ``running`` once its listening sockets are bound. SIGINT and
SIGTERM (handled by uvicorn) or ``request_shutdown()`` move it to
``shutting_down``; it is ``stopped`` when in-flight requests have drained
or the shutdown deadline has elapsed, whichever comes first, and the
application lifespan has shut down. Only the drain is bound by the deadline.
A drain cut short, by the deadline or by a second termination signal,
cancels the remaining requests and is reported as a forced stop.
"""

from __future__ import annotations

import asyncio
import socket
import time
from dataclasses import dataclass
from enum import StrEnum

import uvicorn
from starlette.types import ASGIApp

from service_template.observability import DefaultLifecycleProbe, LifecycleProbe


class ServerState(StrEnum):
    CREATED = "created"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ShutdownReport:
    duration_seconds: float
    forced: bool


class ServerStartupError(RuntimeError):
    """The server stopped before it ever accepted connections."""


class ServiceServer(uvicorn.Server):
    """uvicorn server with an observable lifecycle and a shutdown report."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        service_name: str,
        host: str = "0.0.0.0",
        port: int = 8080,
        shutdown_timeout: float = 30.0,
        probe: LifecycleProbe | None = None,
    ):
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            lifespan="on",
            access_log=False,
            log_config=None,
            timeout_graceful_shutdown=shutdown_timeout,
        )
        super().__init__(config)
        self.service_name = service_name
        self.lifecycle_state = ServerState.CREATED
        self.report: ShutdownReport | None = None
        self._drain_cut_short = False
        self._probe = probe or DefaultLifecycleProbe()

    @property
    def shutdown_timeout(self) -> float:
        return float(self.config.timeout_graceful_shutdown or 0)

    @property
    def bound_port(self) -> int | None:
        """Port of the first listening socket, once bound."""
        for server in getattr(self, "servers", []):
            for sock in server.sockets:
                return sock.getsockname()[1]
        return None

    def request_shutdown(self) -> None:
        """Begin graceful shutdown, as a termination signal would."""
        self.should_exit = True

    async def startup(self, sockets: list[socket.socket] | None = None) -> None:
        self._probe.server_starting(self.service_name, self.config.host, self.config.port)
        try:
            await super().startup(sockets=sockets)
        except SystemExit as exc:
            # uvicorn exits the process when the listener cannot be bound
            self.lifecycle_state = ServerState.STOPPED
            self._probe.server_failed(self.service_name, exc)
            raise

        if self.started:
            self.lifecycle_state = ServerState.RUNNING
            self._probe.server_started(
                self.service_name, self.config.host, self.bound_port or self.config.port
            )

    async def _wait_tasks_to_complete(self) -> None:
        try:
            await super()._wait_tasks_to_complete()
        except asyncio.CancelledError:
            # uvicorn cancels the drain when timeout_graceful_shutdown passes
            self._drain_cut_short = True
            raise

    async def shutdown(self, sockets: list[socket.socket] | None = None) -> None:
        self.lifecycle_state = ServerState.SHUTTING_DOWN
        self._probe.shutdown_started(self.service_name, self.shutdown_timeout)

        start = time.monotonic()
        try:
            await super().shutdown(sockets=sockets)
        finally:
            elapsed = time.monotonic() - start
            forced = self._drain_cut_short or self.force_exit
            self.report = ShutdownReport(duration_seconds=elapsed, forced=forced)
            self.lifecycle_state = ServerState.STOPPED
            self._probe.server_stopped(self.service_name, elapsed, forced)

    async def run_until_stopped(self) -> ShutdownReport:
        """Serve until shutdown completes and report how it went.

        Raises:
            ServerStartupError: If the application failed to start, for
                example because its lifespan startup raised.
            SystemExit: If the listener could not be bound.
        """
        await self.serve()
        if self.report is None:
            self.lifecycle_state = ServerState.STOPPED
            error = ServerStartupError(f"{self.service_name} failed to start")
            self._probe.server_failed(self.service_name, error)
            raise error
        return self.report
