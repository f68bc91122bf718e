"""Structured-logging probes shared by every process.

Components report what happened through a probe (``pool_opened``,
``startup_failed``) and never call the logger directly. Tests swap the probe
for a mock and assert on events.
"""

from infrastructure.observability.context import ObservationContext
from infrastructure.observability.startup_probe import (
    DefaultStartupProbe,
    StartupProbe,
)
from infrastructure.observability.storage_probe import (
    DefaultStoragePoolProbe,
    StoragePoolProbe,
)

__all__ = [
    "DefaultStartupProbe",
    "DefaultStoragePoolProbe",
    "ObservationContext",
    "StartupProbe",
    "StoragePoolProbe",
]
