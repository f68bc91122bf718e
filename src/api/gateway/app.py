"""API gateway assembly."""

from __future__ import annotations

import httpx
import structlog

from gateway.observability import DefaultProxyProbe
from gateway.proxy import ReverseProxy
from gateway.targets import ProxyTargetTable
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import (
    ProxySettings,
    ServerSettings,
    TenantSettings,
    get_proxy_settings,
    get_server_settings,
)
from service_template.template import ServiceTemplate


def create_gateway(
    server_settings: ServerSettings | None = None,
    proxy_settings: ProxySettings | None = None,
    *,
    tenant_settings: TenantSettings | None = None,
    client: httpx.AsyncClient | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> ServiceTemplate:
    """Build the gateway service.

    The gateway has the standard operational endpoints and forwards every
    other request to the backend that owns its path prefix.

    Args:
        server_settings: Server settings (defaults to the environment).
        proxy_settings: Proxy targets and timeout (defaults to the environment).
        tenant_settings: Tenant header policy (defaults to the environment).
        client: Outbound HTTP client. The gateway creates and closes its own
            when omitted; a supplied client is left open.
        logger: Logger injected into every probe.

    Returns:
        The assembled, not yet built, service template.
    """
    server_settings = server_settings or get_server_settings()
    proxy_settings = proxy_settings or get_proxy_settings()
    startup_probe = DefaultStartupProbe(logger=logger)
    proxy_probe = DefaultProxyProbe(logger=logger)

    targets = ProxyTargetTable.from_settings(proxy_settings, probe=proxy_probe)
    for target in targets:
        startup_probe.proxy_target_registered(target.name, target.prefix, target.base_url)

    proxy = ReverseProxy(
        targets,
        timeout=proxy_settings.timeout_seconds,
        client=client,
        limits=httpx.Limits(
            max_connections=proxy_settings.max_connections,
            max_keepalive_connections=proxy_settings.max_keepalive_connections,
        ),
        probe=proxy_probe,
    )

    template = ServiceTemplate(
        server_settings.service_name,
        server_settings=server_settings,
        tenant_settings=tenant_settings,
        logger=logger,
    )
    template.set_fallback(proxy.forward)
    template.add_lifespan(proxy.lifespan)

    startup_probe.gateway_assembled(template.name, len(targets))
    return template
