"""Storage collaborator contract.

Services built on the service template do not own their persistence
engine. They receive a storage handle that can report its own health and a
snapshot of its connection pool, which is all the readiness and metrics
endpoints need.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class PoolStats:
    """Point-in-time connection pool statistics.

    Attributes:
        total: Connections currently open (idle + used).
        idle: Connections available for checkout.
        used: Connections checked out by callers.
    """

    total: int
    idle: int
    used: int

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@runtime_checkable
class StorageHandle(Protocol):
    """What the service template needs from a storage backend."""

    async def health_check(self, timeout: float) -> None:
        """Verify the backend is reachable within ``timeout`` seconds.

        Raises:
            Exception: Any failure, including the deadline being exceeded.
        """
        ...

    def stats(self) -> PoolStats:
        """Return a snapshot of the connection pool. Must not block."""
        ...

    def close(self) -> None:
        """Release every pooled connection."""
        ...
