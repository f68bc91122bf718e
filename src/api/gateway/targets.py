"""Backend routing table for the gateway.

Matching policy: the longest registered prefix wins, where a prefix only
matches on a path segment boundary (``/api/v1/teams`` matches
``/api/v1/teams`` and ``/api/v1/teams/42`` but not ``/api/v1/teamsx``).
Targets with identical prefixes are resolved by registration order; the
first one registered wins and later ones are reported as shadowed.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import httpx

from gateway.observability import DefaultProxyProbe, ProxyProbe
from infrastructure.settings import ProxySettings
from shared_kernel.errors import TargetMisconfiguredError


def normalize_prefix(path_prefix: str) -> str:
    return "/" + path_prefix.strip().strip("/")


@dataclass(frozen=True)
class ProxyTarget:
    name: str
    path_prefix: str
    base_url: str

    @property
    def prefix(self) -> str:
        return normalize_prefix(self.path_prefix)

    def matches(self, path: str) -> bool:
        prefix = self.prefix
        if prefix == "/":
            return True
        return path == prefix or path.startswith(prefix + "/")

    def resolve_base_url(self) -> httpx.URL:
        """Parse the base URL, which must be absolute http(s) with a host.

        Raises:
            TargetMisconfiguredError: If the URL cannot be forwarded to.
        """
        try:
            url = httpx.URL(self.base_url)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise TargetMisconfiguredError(
                f"invalid base URL for {self.name}: {e}"
            ) from e

        if url.scheme not in ("http", "https"):
            raise TargetMisconfiguredError(
                f"invalid base URL for {self.name}: scheme must be http or https"
            )
        if not url.host:
            raise TargetMisconfiguredError(
                f"invalid base URL for {self.name}: missing host"
            )
        return url


class ProxyTargetTable:
    """Ordered set of backends."""

    def __init__(
        self,
        targets: Iterable[ProxyTarget] = (),
        probe: ProxyProbe | None = None,
    ):
        self._probe = probe or DefaultProxyProbe()
        self._targets: list[ProxyTarget] = []
        for target in targets:
            self.register(target)

    @classmethod
    def from_settings(
        cls,
        settings: ProxySettings,
        probe: ProxyProbe | None = None,
    ) -> ProxyTargetTable:
        return cls(
            (
                ProxyTarget(
                    name=target.name,
                    path_prefix=target.path_prefix,
                    base_url=target.base_url,
                )
                for target in settings.targets
            ),
            probe=probe,
        )

    def __iter__(self) -> Iterator[ProxyTarget]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def register(self, target: ProxyTarget) -> None:
        for existing in self._targets:
            if existing.prefix == target.prefix:
                self._probe.target_shadowed(
                    name=target.name,
                    path_prefix=target.prefix,
                    shadowed_by=existing.name,
                )
                break
        self._targets.append(target)

    def match(self, path: str) -> ProxyTarget | None:
        """The target with the longest prefix matching ``path``, if any."""
        best: ProxyTarget | None = None
        for target in self._targets:
            if target.matches(path) and (best is None or len(target.prefix) > len(best.prefix)):
                best = target
        return best
