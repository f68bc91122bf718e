"""psycopg2-backed implementation of the StorageHandle contract."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import psycopg2
from psycopg2 import pool as psycopg2_pool

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DatabaseHealthCheckError,
)
from infrastructure.observability.storage_probe import (
    DefaultStoragePoolProbe,
    StoragePoolProbe,
)
from shared_kernel.storage import PoolStats

if TYPE_CHECKING:
    from psycopg2.extensions import connection as PsycopgConnection

    from infrastructure.settings import DatabaseSettings

PING_QUERY = "SELECT 1"


class ConnectionPool:
    """Thread-safe PostgreSQL pool usable as a service's storage handle.

    The blocking driver runs in worker threads during health checks, so a
    hung database costs readiness its deadline and never stalls the event
    loop. With ``pool_enabled`` off the handle exists but holds no
    connections, and every ping reports the pool as unavailable.
    """

    def __init__(
        self,
        settings: DatabaseSettings,
        probe: StoragePoolProbe | None = None,
    ):
        self._settings = settings
        self._probe = probe or DefaultStoragePoolProbe()
        self._pool: psycopg2_pool.ThreadedConnectionPool | None = None
        if settings.pool_enabled:
            self._pool = self._open()

    @property
    def target(self) -> str:
        return self._settings.connection_string

    def _open(self) -> psycopg2_pool.ThreadedConnectionPool:
        settings = self._settings
        try:
            pool = psycopg2_pool.ThreadedConnectionPool(
                minconn=settings.pool_min_connections,
                maxconn=settings.pool_max_connections,
                host=settings.host,
                port=settings.port,
                dbname=settings.database,
                user=settings.username,
                password=settings.password.get_secret_value(),
                connect_timeout=settings.connect_timeout_seconds,
            )
        except psycopg2.Error as e:
            self._probe.pool_open_failed(target=self.target, error=e)
            raise DatabaseConnectionError(
                f"cannot open connection pool to {self.target}: {e}",
                target=self.target,
            ) from e

        self._probe.pool_opened(
            target=self.target,
            min_connections=settings.pool_min_connections,
            max_connections=settings.pool_max_connections,
        )
        return pool

    @contextmanager
    def connection(self) -> Iterator[PsycopgConnection]:
        """Borrow a connection for the duration of the block.

        Raises:
            DatabaseConnectionError: If pooling is off, the pool was closed,
                or every connection is checked out.
        """
        pool = self._pool
        if pool is None:
            raise DatabaseConnectionError(
                "connection pool is not open", target=self.target
            )
        try:
            conn = pool.getconn()
        except psycopg2_pool.PoolError as e:
            self._probe.pool_exhausted(
                max_connections=self._settings.pool_max_connections
            )
            raise DatabaseConnectionError(
                f"no free connection in pool: {e}", target=self.target
            ) from e

        try:
            yield conn
        finally:
            self._release(pool, conn)

    def _release(
        self,
        pool: psycopg2_pool.ThreadedConnectionPool,
        conn: PsycopgConnection,
    ) -> None:
        try:
            pool.putconn(conn)
        except psycopg2_pool.PoolError as e:
            # The pool was closed while the connection was out.
            self._probe.connection_release_failed(error=e)
            conn.close()

    async def health_check(self, timeout: float) -> None:
        """Run ``SELECT 1`` within ``timeout`` seconds.

        Raises:
            DatabaseHealthCheckError: If the query fails or the deadline passes.
            DatabaseConnectionError: If no connection can be borrowed.
        """
        try:
            await asyncio.wait_for(asyncio.to_thread(self._ping), timeout=timeout)
        except TimeoutError as e:
            self._probe.ping_timed_out(timeout=timeout)
            raise DatabaseHealthCheckError(
                f"database did not respond within {timeout:g}s", timeout=timeout
            ) from e
        except DatabaseError as e:
            self._probe.ping_failed(error=e)
            raise
        except psycopg2.Error as e:
            self._probe.ping_failed(error=e)
            raise DatabaseHealthCheckError(f"database ping failed: {e}") from e

    def _ping(self) -> None:
        with self.connection() as conn, conn.cursor() as cursor:
            cursor.execute(PING_QUERY)
            cursor.fetchone()

    def stats(self) -> PoolStats:
        # ThreadedConnectionPool keeps idle connections in _pool and
        # checked-out ones in _used; neither is public.
        if self._pool is None:
            return PoolStats(total=0, idle=0, used=0)
        idle = len(self._pool._pool)
        used = len(self._pool._used)
        return PoolStats(total=idle + used, idle=idle, used=used)

    def close(self) -> None:
        """Close every pooled connection. Safe to call more than once."""
        if self._pool is None:
            return
        final = self.stats()
        self._pool.closeall()
        self._pool = None
        self._probe.pool_closed(stats=final)
