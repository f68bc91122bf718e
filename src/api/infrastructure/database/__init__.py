"""PostgreSQL storage handle for services built on the service template."""

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DatabaseHealthCheckError,
)

__all__ = [
    "ConnectionPool",
    "DatabaseConnectionError",
    "DatabaseError",
    "DatabaseHealthCheckError",
]
