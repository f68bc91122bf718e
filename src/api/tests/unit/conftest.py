"""Unit test fixtures with mocked dependencies."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr

from infrastructure.settings import (
    DatabaseSettings,
    ProxySettings,
    ServerSettings,
    TenantSettings,
)

TENANT_ID = "6f1c2b9e-7d8a-4c3b-9e2f-1a2b3c4d5e6f"


@pytest.fixture
def mock_db_settings() -> DatabaseSettings:
    """Provide test database settings."""
    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password=SecretStr("testpass"),
        pool_min_connections=2,
        pool_max_connections=5,
    )


@pytest.fixture
def server_settings() -> ServerSettings:
    """Server settings with a fixed CORS allow-list."""
    return ServerSettings(
        service_name="test-service",
        host="127.0.0.1",
        port=0,
        environment="development",
        cors_allowed_origins=["http://localhost:3000"],
    )


@pytest.fixture
def tenant_settings() -> TenantSettings:
    return TenantSettings(default_user_id="system", require_user_header=False)


@pytest.fixture
def proxy_settings() -> ProxySettings:
    return ProxySettings(
        timeout_seconds=5.0,
        targets=[
            {
                "name": "team-service",
                "path_prefix": "/api/v1/teams",
                "base_url": "http://team-service",
            },
            {
                "name": "application-service",
                "path_prefix": "/api/v1/applications",
                "base_url": "http://application-service",
            },
        ],
    )


@pytest.fixture
def tenant_headers() -> dict[str, str]:
    return {"X-Tenant-ID": TENANT_ID, "X-User-Email": "alice@example.com"}


@pytest.fixture
def mock_psycopg2_connection():
    """Provide a mocked psycopg2 connection."""
    conn = MagicMock()
    conn.closed = False

    cursor = MagicMock()
    cursor.fetchall.return_value = []
    cursor.fetchone.return_value = (1,)

    # Set up context manager
    cursor.__enter__ = MagicMock(return_value=cursor)
    cursor.__exit__ = MagicMock(return_value=False)
    conn.cursor.return_value = cursor

    return conn, cursor
