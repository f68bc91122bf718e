"""Process-wide infrastructure resources.

Only raw resources live here. Nothing in this module knows about the
gateway or the service template.
"""

from functools import lru_cache

from infrastructure.database.connection_pool import ConnectionPool
from infrastructure.settings import get_database_settings


@lru_cache
def get_connection_pool() -> ConnectionPool:
    """The storage handle configured from PLATFORM_DB_*, opened on first use.

    Every template in the process that calls ``setup_database()`` without
    explicit settings shares this pool.
    """
    return ConnectionPool(get_database_settings())
