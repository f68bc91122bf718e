"""Domain-Oriented Observability for the gateway."""

from gateway.observability.proxy_probe import DefaultProxyProbe, ProxyProbe

__all__ = [
    "DefaultProxyProbe",
    "ProxyProbe",
]
