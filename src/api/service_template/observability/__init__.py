"""Domain-Oriented Observability for the service template.

Probes for request handling, service lifecycle and readiness evaluation.
"""

from service_template.observability.health_probe import (
    DefaultHealthProbe,
    HealthProbe,
)
from service_template.observability.lifecycle_probe import (
    DefaultLifecycleProbe,
    LifecycleProbe,
)
from service_template.observability.request_probe import (
    DefaultRequestProbe,
    RequestProbe,
)

__all__ = [
    "HealthProbe",
    "DefaultHealthProbe",
    "LifecycleProbe",
    "DefaultLifecycleProbe",
    "RequestProbe",
    "DefaultRequestProbe",
]
