"""Errors raised by the PostgreSQL storage handle.

Readiness treats any exception from a storage ping as "not ready", so these
exist for callers that use the pool directly and for clearer log lines.
"""

from __future__ import annotations


class DatabaseError(Exception):
    """A storage operation against PostgreSQL failed."""


class DatabaseConnectionError(DatabaseError):
    """No usable connection could be obtained.

    Attributes:
        target: Password-free DSN of the database, when known.
    """

    def __init__(self, message: str, target: str | None = None):
        super().__init__(message)
        self.target = target


class DatabaseHealthCheckError(DatabaseError):
    """The readiness ping failed or missed its deadline.

    Attributes:
        timeout: The deadline in seconds when the ping timed out, else None.
    """

    def __init__(self, message: str, timeout: float | None = None):
        super().__init__(message)
        self.timeout = timeout
