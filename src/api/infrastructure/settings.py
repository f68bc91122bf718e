"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]


class ServerSettings(BaseSettings):
    """HTTP server and process lifecycle settings.

    Environment variables:
        PLATFORM_SERVER_SERVICE_NAME: Service name reported by /health and /version
        PLATFORM_SERVER_HOST: Bind address (default: 0.0.0.0)
        PLATFORM_SERVER_PORT: Listen port (default: 8080)
        PLATFORM_SERVER_ENVIRONMENT: development, staging or production
        PLATFORM_SERVER_DEBUG: Debug mode (default: false)
        PLATFORM_SERVER_SHUTDOWN_TIMEOUT_SECONDS: Graceful shutdown deadline (default: 30)
        PLATFORM_SERVER_CORS_ALLOWED_ORIGINS: JSON list of exact-match origins
    """

    model_config = SettingsConfigDict(
        env_prefix="PLATFORM_SERVER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    service_name: str = Field(default="api-gateway", description="Service name")
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Listen port", ge=0, le=65535)
    environment: str = Field(
        default="development",
        description="Deployment environment (development, staging, production)",
    )
    debug: bool = Field(default=False, description="Debug mode")
    shutdown_timeout_seconds: float = Field(
        default=30.0,
        description="Maximum time to wait for in-flight requests on shutdown",
        gt=0,
    )
    cors_allowed_origins: list[str] = Field(
        default_factory=lambda: list(DEVELOPMENT_CORS_ORIGINS),
        description="Origins allowed to make cross-origin requests (exact match)",
    )

    @model_validator(mode="after")
    def drop_development_origins_in_production(self) -> "ServerSettings":
        """Production only allows origins that were configured explicitly."""
        if self.is_production and "cors_allowed_origins" not in self.model_fields_set:
            self.cors_allowed_origins = []
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


class TenantSettings(BaseSettings):
    """Tenant header extraction policy.

    The user header fallback exists for non-production convenience. Set
    PLATFORM_TENANT_REQUIRE_USER_HEADER=true to reject requests without
    X-User-Email instead of attributing them to the default user.

    Environment variables:
        PLATFORM_TENANT_DEFAULT_USER_ID: User id used when X-User-Email is absent
        PLATFORM_TENANT_REQUIRE_USER_HEADER: Reject requests without X-User-Email
    """

    model_config = SettingsConfigDict(
        env_prefix="PLATFORM_TENANT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_user_id: str = Field(
        default="system",
        description="User id assigned when the X-User-Email header is absent",
        min_length=1,
    )
    require_user_header: bool = Field(
        default=False,
        description="Require the X-User-Email header on tenant-scoped routes",
    )


class ProxyTargetSettings(BaseModel):
    """A single backend the gateway forwards to."""

    name: str = Field(..., description="Backend service name", min_length=1)
    path_prefix: str = Field(..., description="Path prefix routed to this backend")
    base_url: str = Field(..., description="Backend base URL (scheme and host)")

    @field_validator("path_prefix")
    @classmethod
    def prefix_must_be_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"path_prefix must start with '/', got: '{value}'")
        return value


class ProxySettings(BaseSettings):
    """Gateway forwarding settings.

    Environment variables:
        PLATFORM_PROXY_TIMEOUT_SECONDS: Outbound call timeout (default: 30)
        PLATFORM_PROXY_TARGETS: JSON list of {"name", "path_prefix", "base_url"}
        PLATFORM_PROXY_MAX_CONNECTIONS: Outbound connection pool size
        PLATFORM_PROXY_MAX_KEEPALIVE_CONNECTIONS: Idle connections kept open
    """

    model_config = SettingsConfigDict(
        env_prefix="PLATFORM_PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Timeout applied to every outbound proxy call",
        gt=0,
    )
    targets: list[ProxyTargetSettings] = Field(
        default_factory=lambda: [
            ProxyTargetSettings(
                name="team-service",
                path_prefix="/api/v1/teams",
                base_url="http://localhost:8083",
            ),
            ProxyTargetSettings(
                name="application-service",
                path_prefix="/api/v1/applications",
                base_url="http://localhost:8082",
            ),
        ],
        description="Backends in registration order",
    )
    max_connections: int = Field(
        default=100,
        description="Maximum outbound connections",
        ge=1,
    )
    max_keepalive_connections: int = Field(
        default=20,
        description="Maximum idle outbound connections",
        ge=0,
    )


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        PLATFORM_DB_HOST: Database host (default: localhost)
        PLATFORM_DB_PORT: Database port (default: 5432)
        PLATFORM_DB_DATABASE: Database name (default: platform)
        PLATFORM_DB_USERNAME: Database user (default: platform)
        PLATFORM_DB_PASSWORD: Database password (required in production)
        PLATFORM_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        PLATFORM_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        PLATFORM_DB_POOL_ENABLED: Enable connection pooling (default: true)
        PLATFORM_DB_CONNECT_TIMEOUT_SECONDS: Connection timeout (default: 10)
        PLATFORM_DB_HEALTH_CHECK_TIMEOUT_SECONDS: Readiness check timeout (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="PLATFORM_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="platform", description="Database name")
    username: str = Field(default="platform", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    pool_enabled: bool = Field(default=True, description="Enable connection pooling")
    connect_timeout_seconds: int = Field(
        default=10,
        description="Timeout for establishing a connection",
        ge=1,
    )
    health_check_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for the readiness database check",
        gt=0,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class LoggingSettings(BaseSettings):
    """Logging settings.

    Environment variables:
        PLATFORM_LOG_LEVEL: debug, info, warning or error (default: info)
        PLATFORM_LOG_FORMAT: auto, json or console (default: auto)
    """

    model_config = SettingsConfigDict(
        env_prefix="PLATFORM_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Minimum log level",
    )
    format: Literal["auto", "json", "console"] = Field(
        default="auto",
        description="Output format; auto picks console on a TTY, JSON otherwise",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.lower()
        return value


# Each process reads its environment once; tests build settings explicitly.


@lru_cache
def get_server_settings() -> ServerSettings:
    return ServerSettings()


@lru_cache
def get_tenant_settings() -> TenantSettings:
    return TenantSettings()


@lru_cache
def get_proxy_settings() -> ProxySettings:
    return ProxySettings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    return DatabaseSettings()


@lru_cache
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings()
