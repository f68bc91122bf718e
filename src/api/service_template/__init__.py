"""Service construction framework.

Every backend process is assembled from a ServiceTemplate (or its
ResourceTemplate specialization), which owns the middleware chain, the
route table and the server lifecycle.
"""

from service_template.chain import MiddlewareChain
from service_template.error_handlers import register_error_handlers
from service_template.health import DependencyCheck, HealthState
from service_template.lifecycle import (
    ServerStartupError,
    ServerState,
    ServiceServer,
    ShutdownReport,
)
from service_template.template import (
    ResourceTemplate,
    RouteBundle,
    ServiceTemplate,
    normalize_base_path,
)
from service_template.tenant import (
    extract_tenant_context,
    get_tenant_from_request,
    require_tenant_context,
    with_tenant_validation,
)

__all__ = [
    "DependencyCheck",
    "HealthState",
    "MiddlewareChain",
    "ResourceTemplate",
    "RouteBundle",
    "ServerStartupError",
    "ServerState",
    "ServiceServer",
    "ServiceTemplate",
    "ShutdownReport",
    "extract_tenant_context",
    "get_tenant_from_request",
    "normalize_base_path",
    "register_error_handlers",
    "require_tenant_context",
    "with_tenant_validation",
]
