"""API gateway: path-prefix routing and streaming reverse proxy."""

from gateway.app import create_gateway
from gateway.proxy import ReverseProxy
from gateway.targets import ProxyTarget, ProxyTargetTable

__all__ = [
    "ProxyTarget",
    "ProxyTargetTable",
    "ReverseProxy",
    "create_gateway",
]
