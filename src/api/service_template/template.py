"""Service and resource templates.

A ServiceTemplate gives every backend process the same shape: the default
middleware chain, envelope error handlers, the standard operational
endpoints, and registration points for business routes.

    template = ResourceTemplate("team-service", "teams")
    template.setup_database()
    template.register_resource_handlers(
        RouteBundle(
            create=create_team,
            list=list_teams,
            get=get_team,
            update=update_team,
            delete=delete_team,
        )
    )
    template.serve()

Routes can be registered until the application is built by ``build()`` or
the first read of ``app``. At that point the fallback route is appended,
the middleware chain is applied, and both the route table and the chain
are frozen.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import FastAPI
from fastapi.routing import APIRoute

from infrastructure.database import ConnectionPool
from infrastructure.dependencies import get_connection_pool
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import (
    DatabaseSettings,
    ServerSettings,
    TenantSettings,
    get_database_settings,
    get_server_settings,
    get_tenant_settings,
)
from infrastructure.version import __version__
from service_template.chain import MiddlewareChain
from service_template.error_handlers import register_error_handlers
from service_template.health import (
    DEFAULT_CHECK_TIMEOUT_SECONDS,
    STORAGE_CHECK_NAME,
    DependencyCheck,
    RegisteredCheck,
    storage_check,
)
from service_template.lifecycle import ServiceServer, ShutdownReport
from service_template.middleware import (
    AllowListCORSMiddleware,
    LoggingMiddleware,
    RecoveryMiddleware,
    RequestIDMiddleware,
)
from service_template.observability import (
    DefaultHealthProbe,
    DefaultLifecycleProbe,
    DefaultRequestProbe,
)
from service_template.routes import StandardEndpoints
from shared_kernel.errors import (
    DuplicateRouteError,
    MisconfigurationError,
    MissingRouteHandlerError,
    RouteTableFrozenError,
)
from shared_kernel.storage import StorageHandle

Endpoint = Callable[..., Any]
LifespanFactory = Callable[[FastAPI], AbstractAsyncContextManager[None]]

REQUIRED_SLOTS: tuple[str, ...] = ("create", "list", "get", "update", "delete")
FALLBACK_METHODS: tuple[str, ...] = (
    "GET",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "HEAD",
)
FALLBACK_PATH = "/{path:path}"
STANDARD_METHODS: tuple[str, ...] = ("GET", "HEAD")


@dataclass(frozen=True)
class RouteBundle:
    """CRUD handlers for one resource type. ``patch`` is optional."""

    create: Endpoint | None = None
    list: Endpoint | None = None
    get: Endpoint | None = None
    update: Endpoint | None = None
    delete: Endpoint | None = None
    patch: Endpoint | None = None

    def missing_slots(self) -> tuple[str, ...]:
        return tuple(name for name in REQUIRED_SLOTS if getattr(self, name) is None)


def normalize_base_path(base_path: str) -> str:
    """Leading slash, no trailing slash: ``teams/`` becomes ``/teams``."""
    normalized = "/" + base_path.strip().strip("/")
    if normalized == "/":
        raise MisconfigurationError(f"invalid base path: {base_path!r}")
    return normalized


class ServiceTemplate:
    """Standard backend process assembly."""

    def __init__(
        self,
        name: str,
        version: str | None = None,
        *,
        server_settings: ServerSettings | None = None,
        tenant_settings: TenantSettings | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ):
        self.name = name
        self.version = version or __version__
        self.server_settings = server_settings or get_server_settings()
        self.tenant_settings = tenant_settings or get_tenant_settings()

        self._request_probe = DefaultRequestProbe(logger=logger)
        self._lifecycle_probe = DefaultLifecycleProbe(logger=logger)
        self._startup_probe = DefaultStartupProbe(logger=logger)
        self._endpoints = StandardEndpoints(
            service_name=name,
            version=self.version,
            probe=DefaultHealthProbe(logger=logger),
        )

        self._fastapi = FastAPI(
            title=name,
            version=self.version,
            lifespan=self._lifespan,
        )
        self._fastapi.state.tenant_settings = self.tenant_settings
        self._lifespans: list[LifespanFactory] = []
        self._registered: set[tuple[str, str]] = set()
        self._fallback: Endpoint | None = None
        self._readiness_bound = False
        self._built = False

        self.middleware = MiddlewareChain()
        self.middleware.use(RecoveryMiddleware, probe=self._request_probe)
        self.middleware.use(RequestIDMiddleware)
        self.middleware.use(LoggingMiddleware, probe=self._request_probe)
        self.middleware.use(
            AllowListCORSMiddleware,
            allowed_origins=self.server_settings.cors_allowed_origins,
        )

        register_error_handlers(self._fastapi, probe=self._request_probe)
        for path, endpoint in (
            ("/health", self._endpoints.health),
            ("/readiness", self._endpoints.readiness),
            ("/liveness", self._endpoints.liveness),
            ("/version", self._endpoints.version_info),
            ("/metrics", self._endpoints.metrics),
        ):
            self._add_standard_route(path, endpoint)

    @property
    def storage(self) -> StorageHandle | None:
        return self._endpoints.storage

    @property
    def routes(self) -> tuple[tuple[str, str], ...]:
        """Registered (method, path) pairs in route table order."""
        table: list[tuple[str, str]] = []
        for route in self._fastapi.router.routes:
            if isinstance(route, APIRoute):
                table.extend((method, route.path) for method in sorted(route.methods))
        return tuple(table)

    @property
    def app(self) -> FastAPI:
        """The ASGI application. First access builds and freezes it."""
        return self.build()

    def _ensure_open(self, what: str) -> None:
        if self._built:
            raise RouteTableFrozenError(
                f"cannot register {what}: {self.name} route table is frozen"
            )

    def build(self) -> FastAPI:
        """Append the fallback route, apply the middleware chain and freeze.

        Idempotent; later calls return the same application.
        """
        if self._built:
            return self._fastapi
        if self._fallback is not None:
            self._fastapi.add_route(
                FALLBACK_PATH,
                self._fallback,
                methods=list(FALLBACK_METHODS),
                include_in_schema=False,
            )
        self.middleware.apply(self._fastapi)
        self._built = True
        return self._fastapi

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            if self._endpoints.storage is not None:
                stack.callback(self._endpoints.storage.close)
            for factory in self._lifespans:
                await stack.enter_async_context(factory(app))
            yield

    def add_route(self, method: str, path: str, endpoint: Endpoint, **kwargs: Any) -> None:
        """Register one method and path.

        Raises:
            RouteTableFrozenError: If the application was already built.
            DuplicateRouteError: If the method and path are already taken.
        """
        method = method.upper()
        self._ensure_open(f"{method} {path}")
        if (method, path) in self._registered:
            raise DuplicateRouteError(f"route already registered: {method} {path}")
        self._fastapi.add_api_route(path, endpoint, methods=[method], **kwargs)
        self._registered.add((method, path))
        self._lifecycle_probe.route_registered(self.name, method, path)

    def _add_standard_route(self, path: str, endpoint: Endpoint) -> None:
        self._fastapi.add_api_route(path, endpoint, methods=list(STANDARD_METHODS))
        for method in STANDARD_METHODS:
            self._registered.add((method, path))
            self._lifecycle_probe.route_registered(self.name, method, path)

    def register_crud_routes(self, base_path: str, bundle: RouteBundle) -> None:
        """Register the collection and item routes for a resource.

        ``POST base``, ``GET base``, ``GET base/{id}``, ``PUT base/{id}``,
        ``DELETE base/{id}`` and, when the bundle has one, ``PATCH base/{id}``.
        Nothing is registered unless every route can be.

        Raises:
            MissingRouteHandlerError: If a required handler is missing.
            DuplicateRouteError: If any of the routes is already registered.
            RouteTableFrozenError: If the application was already built.
        """
        base = normalize_base_path(base_path)
        missing = bundle.missing_slots()
        if missing:
            raise MissingRouteHandlerError(
                f"route bundle for {base} is missing handlers: {', '.join(missing)}"
            )

        item = f"{base}/{{id}}"
        planned: list[tuple[str, str, Endpoint]] = [
            ("POST", base, bundle.create),
            ("GET", base, bundle.list),
            ("GET", item, bundle.get),
            ("PUT", item, bundle.update),
            ("DELETE", item, bundle.delete),
        ]
        if bundle.patch is not None:
            planned.append(("PATCH", item, bundle.patch))

        self._ensure_open(f"routes for {base}")
        taken = [f"{m} {p}" for m, p, _ in planned if (m, p) in self._registered]
        if taken:
            raise DuplicateRouteError(f"routes already registered: {', '.join(taken)}")

        for method, path, endpoint in planned:
            self.add_route(method, path, endpoint)

    def set_fallback(self, endpoint: Endpoint) -> None:
        """Handle every request no local route matches, for all methods."""
        self._ensure_open("fallback")
        self._fallback = endpoint

    def add_lifespan(self, factory: LifespanFactory) -> None:
        """Enter ``factory(app)`` on startup and exit it on shutdown."""
        self._ensure_open("lifespan")
        self._lifespans.append(factory)

    def attach_storage(
        self,
        storage: StorageHandle,
        timeout: float = DEFAULT_CHECK_TIMEOUT_SECONDS,
    ) -> None:
        """Use ``storage`` for readiness and metrics and close it on shutdown."""
        self._ensure_open("storage")
        self._endpoints.storage = storage
        self._endpoints.checks = [
            check for check in self._endpoints.checks if check.name != STORAGE_CHECK_NAME
        ]
        self._endpoints.checks.insert(
            0,
            RegisteredCheck(STORAGE_CHECK_NAME, storage_check(storage, timeout), timeout),
        )
        self._startup_probe.storage_attached(self.name)
        self._bind_readiness()

    def setup_database(self, settings: DatabaseSettings | None = None) -> ConnectionPool:
        """Create the default PostgreSQL pool and attach it as storage.

        Without explicit settings the process-wide pool configured from
        PLATFORM_DB_* is used.

        Raises:
            DatabaseConnectionError: If the pool cannot be initialized.
        """
        if settings is None:
            settings = get_database_settings()
            pool = get_connection_pool()
        else:
            pool = ConnectionPool(settings)
        self.attach_storage(pool, timeout=settings.health_check_timeout_seconds)
        return pool

    def add_dependency_check(
        self,
        name: str,
        check: DependencyCheck,
        timeout: float = DEFAULT_CHECK_TIMEOUT_SECONDS,
    ) -> None:
        """Make readiness depend on ``check`` succeeding within ``timeout``."""
        self._ensure_open(f"dependency check {name}")
        if any(existing.name == name for existing in self._endpoints.checks):
            raise DuplicateRouteError(f"dependency check already registered: {name}")
        self._endpoints.checks.append(RegisteredCheck(name, check, timeout))
        self._bind_readiness()

    def _bind_readiness(self) -> None:
        """Swap /readiness for the dependency-aware handler, in place."""
        if self._readiness_bound:
            return
        routes = self._fastapi.router.routes
        index = next(
            i
            for i, route in enumerate(routes)
            if isinstance(route, APIRoute) and route.path == "/readiness"
        )
        self._fastapi.add_api_route(
            "/readiness",
            self._endpoints.readiness_with_dependencies,
            methods=list(STANDARD_METHODS),
        )
        routes[index] = routes.pop()
        self._readiness_bound = True
        self._lifecycle_probe.readiness_replaced(self.name, len(self._endpoints.checks))

    def serve(self) -> ShutdownReport:
        """Run the service until it is stopped."""
        server = ServiceServer(
            self.app,
            service_name=self.name,
            host=self.server_settings.host,
            port=self.server_settings.port,
            shutdown_timeout=self.server_settings.shutdown_timeout_seconds,
            probe=self._lifecycle_probe,
        )
        return asyncio.run(server.run_until_stopped())


class ResourceTemplate(ServiceTemplate):
    """Service template for a single resource at ``/api/v1/{resource_name}``."""

    def __init__(self, service_name: str, resource_name: str, **kwargs: Any):
        super().__init__(service_name, **kwargs)
        self.resource_name = resource_name
        self.resource_path = f"/api/v1/{resource_name.strip('/')}"

    def register_resource_handlers(self, bundle: RouteBundle) -> None:
        self.register_crud_routes(self.resource_path, bundle)
