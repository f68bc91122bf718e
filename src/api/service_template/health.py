"""Readiness aggregation over dependency checks.

A dependency check is an async callable that returns on success and raises
on failure. Every check runs concurrently under its own deadline; the
service is ready only when all of them pass.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from service_template.observability import DefaultHealthProbe, HealthProbe
from shared_kernel.storage import StorageHandle

DEFAULT_CHECK_TIMEOUT_SECONDS = 5.0
STORAGE_CHECK_NAME = "database"

DependencyCheck = Callable[[], Awaitable[None]]


@dataclass(frozen=True)
class RegisteredCheck:
    name: str
    check: DependencyCheck
    timeout: float = DEFAULT_CHECK_TIMEOUT_SECONDS


@dataclass(frozen=True)
class CheckResult:
    name: str
    healthy: bool
    detail: str

    @property
    def status(self) -> str:
        return "healthy" if self.healthy else "unhealthy"

    def as_dict(self) -> dict[str, Any]:
        return {"name": self.name, "status": self.status, "detail": self.detail}


@dataclass(frozen=True)
class HealthState:
    checks: tuple[CheckResult, ...]

    @property
    def ready(self) -> bool:
        return all(result.healthy for result in self.checks)

    @property
    def status(self) -> str:
        return "ready" if self.ready else "not ready"


def storage_check(storage: StorageHandle, timeout: float) -> DependencyCheck:
    """Adapt a storage handle's health check to a dependency check."""

    async def check() -> None:
        await storage.health_check(timeout)

    return check


async def run_check(
    registered: RegisteredCheck,
    probe: HealthProbe | None = None,
) -> CheckResult:
    probe = probe or DefaultHealthProbe()
    try:
        await asyncio.wait_for(registered.check(), timeout=registered.timeout)
    except TimeoutError:
        probe.dependency_check_timed_out(registered.name, registered.timeout)
        return CheckResult(
            name=registered.name,
            healthy=False,
            detail=f"timed out after {registered.timeout:g}s",
        )
    except Exception as e:
        probe.dependency_check_failed(registered.name, e)
        return CheckResult(
            name=registered.name,
            healthy=False,
            detail=str(e) or type(e).__name__,
        )
    return CheckResult(name=registered.name, healthy=True, detail="ok")


async def evaluate_readiness(
    checks: Sequence[RegisteredCheck],
    probe: HealthProbe | None = None,
) -> HealthState:
    """Run every check concurrently and aggregate the results in order."""
    probe = probe or DefaultHealthProbe()
    results = await asyncio.gather(*(run_check(check, probe) for check in checks))
    state = HealthState(checks=tuple(results))
    probe.readiness_evaluated(ready=state.ready, check_count=len(state.checks))
    return state
