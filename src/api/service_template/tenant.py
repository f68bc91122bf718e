"""Tenant context resolution from request headers.

``X-Tenant-ID`` is required and must be a UUID. ``X-User-Email`` is
optional; when it is absent the configured default user stands in, unless
the service requires the header.

Tenant scoping is opt-in per route. Wrap a handler with
``with_tenant_validation`` or depend on ``require_tenant_context``:

    @with_tenant_validation
    async def list_teams(request: Request, tenant: TenantContext):
        ...

    @router.get("/example")
    async def example(
        tenant: Annotated[TenantContext, Depends(require_tenant_context)],
    ):
        ...
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from uuid import UUID

from starlette.requests import Request
from starlette.responses import Response

from infrastructure.settings import TenantSettings, get_tenant_settings
from shared_kernel.errors import InvalidTenantError, MissingTenantContextError
from shared_kernel.middleware.observability import (
    DefaultTenantContextProbe,
    TenantContextProbe,
)
from shared_kernel.middleware.tenant_context import (
    TENANT_ID_HEADER,
    USER_EMAIL_HEADER,
    TenantContext,
)

TenantHandler = Callable[[Request, TenantContext], Awaitable[Response]]


def extract_tenant_context(
    request: Request,
    *,
    default_user_id: str = "system",
    require_user: bool = False,
    probe: TenantContextProbe | None = None,
) -> TenantContext:
    """Resolve the tenant context from the request headers.

    Args:
        request: The inbound request.
        default_user_id: User recorded when X-User-Email is absent.
        require_user: Treat a missing X-User-Email as an invalid tenant.
        probe: Domain probe for observability.

    Returns:
        TenantContext with the parsed tenant UUID and the acting user.

    Raises:
        InvalidTenantError: If X-Tenant-ID is missing or not a UUID, or if
            X-User-Email is missing while required.
    """
    probe = probe or DefaultTenantContextProbe()
    path = request.url.path

    raw_tenant_id = request.headers.get(TENANT_ID_HEADER, "").strip()
    if not raw_tenant_id:
        probe.tenant_header_missing(path=path)
        raise InvalidTenantError(f"missing {TENANT_ID_HEADER} header")

    try:
        tenant_id = UUID(raw_tenant_id)
    except ValueError:
        probe.invalid_tenant_id_format(raw_value=raw_tenant_id, path=path)
        raise InvalidTenantError(
            f"invalid {TENANT_ID_HEADER} format: {raw_tenant_id!r} is not a UUID"
        ) from None

    user_id = request.headers.get(USER_EMAIL_HEADER, "").strip()
    if not user_id:
        if require_user:
            probe.user_header_missing(tenant_id=str(tenant_id), path=path)
            raise InvalidTenantError(f"missing {USER_EMAIL_HEADER} header")
        user_id = default_user_id
        probe.default_user_assigned(tenant_id=str(tenant_id), user_id=user_id)

    probe.tenant_resolved(tenant_id=str(tenant_id), user_id=user_id)
    return TenantContext(tenant_id=tenant_id, user_id=user_id)


def _settings_for(request: Request) -> TenantSettings:
    settings = getattr(request.app.state, "tenant_settings", None)
    return settings if settings is not None else get_tenant_settings()


def _resolve(request: Request) -> TenantContext:
    settings = _settings_for(request)
    tenant = extract_tenant_context(
        request,
        default_user_id=settings.default_user_id,
        require_user=settings.require_user_header,
    )
    request.state.tenant = tenant
    return tenant


def with_tenant_validation(
    handler: TenantHandler,
) -> Callable[[Request], Awaitable[Response]]:
    """Resolve the tenant before ``handler`` runs and pass it explicitly.

    The context is also stored on ``request.state.tenant`` so helpers deeper
    in the call can reach it through ``get_tenant_from_request``. The handler
    is never invoked when resolution fails.
    """

    # functools.wraps would set __wrapped__ and FastAPI would then inspect
    # the two-argument handler signature instead of this one.
    async def wrapper(request: Request) -> Response:
        tenant = _resolve(request)
        return await handler(request, tenant)

    wrapper.__name__ = handler.__name__
    wrapper.__qualname__ = handler.__qualname__
    wrapper.__doc__ = handler.__doc__
    return wrapper


def get_tenant_from_request(request: Request) -> TenantContext:
    """Return the context stored by tenant validation.

    Raises:
        MissingTenantContextError: If the route was registered without
            tenant validation.
    """
    tenant = getattr(request.state, "tenant", None)
    if not isinstance(tenant, TenantContext):
        raise MissingTenantContextError(
            f"no tenant context on request to {request.url.path}; "
            "wrap the handler with tenant validation"
        )
    return tenant


def require_tenant_context(request: Request) -> TenantContext:
    """FastAPI dependency form of tenant validation."""
    return _resolve(request)
