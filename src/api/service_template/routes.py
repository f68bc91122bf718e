"""Standard operational endpoints registered on every service.

/health and /liveness never touch external state. /readiness starts out
static and is rebound to ``readiness_with_dependencies`` once a storage
handle or dependency check is attached.
"""

from __future__ import annotations

import time
from typing import Any

from fastapi import status
from fastapi.responses import JSONResponse

from service_template.health import RegisteredCheck, evaluate_readiness
from service_template.observability import DefaultHealthProbe, HealthProbe
from shared_kernel.http.envelope import respond_with_json, utc_timestamp
from shared_kernel.storage import StorageHandle


class StandardEndpoints:
    """Handlers for /health, /readiness, /liveness, /version and /metrics."""

    def __init__(
        self,
        service_name: str,
        version: str,
        probe: HealthProbe | None = None,
    ):
        self.service_name = service_name
        self.version = version
        self.storage: StorageHandle | None = None
        self.checks: list[RegisteredCheck] = []
        self._probe = probe or DefaultHealthProbe()
        self._started = time.monotonic()

    @property
    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started

    async def health(self) -> JSONResponse:
        return respond_with_json(
            status.HTTP_200_OK,
            {"status": "healthy", "service": self.service_name, "time": utc_timestamp()},
        )

    async def liveness(self) -> JSONResponse:
        return respond_with_json(
            status.HTTP_200_OK,
            {"status": "alive", "service": self.service_name, "time": utc_timestamp()},
        )

    async def version_info(self) -> JSONResponse:
        return respond_with_json(
            status.HTTP_200_OK,
            {"service": self.service_name, "version": self.version, "time": utc_timestamp()},
        )

    async def metrics(self) -> JSONResponse:
        body: dict[str, Any] = {
            "service": self.service_name,
            "uptime_seconds": round(self.uptime_seconds, 3),
            "time": utc_timestamp(),
        }
        if self.storage is not None:
            stats = self.storage.stats()
            body["database"] = {
                "total_connections": stats.total,
                "idle_connections": stats.idle,
                "used_connections": stats.used,
            }
        return respond_with_json(status.HTTP_200_OK, body)

    async def readiness(self) -> JSONResponse:
        return respond_with_json(
            status.HTTP_200_OK,
            {"status": "ready", "checks": [], "time": utc_timestamp()},
        )

    async def readiness_with_dependencies(self) -> JSONResponse:
        state = await evaluate_readiness(self.checks, probe=self._probe)
        body: dict[str, Any] = {
            "status": state.status,
            "checks": [result.as_dict() for result in state.checks],
        }
        if state.ready and self.storage is not None:
            stats = self.storage.stats()
            body["database"] = {
                "status": "healthy",
                "connections": stats.total,
                "idle": stats.idle,
                "used": stats.used,
            }
        body["time"] = utc_timestamp()

        status_code = (
            status.HTTP_200_OK if state.ready else status.HTTP_503_SERVICE_UNAVAILABLE
        )
        return respond_with_json(status_code, body)
