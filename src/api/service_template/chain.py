"""Ordered middleware composition.

Middleware is listed outermost first. The chain has no insert or reorder
operation, so whatever the owner registers first stays outermost. Once the
chain has been applied to an application it is frozen.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from starlette.applications import Starlette

from shared_kernel.errors import ChainFrozenError


@dataclass(frozen=True)
class MiddlewareSpec:
    middleware_class: type
    options: dict[str, Any] = field(default_factory=dict)


class MiddlewareChain:
    def __init__(self) -> None:
        self._entries: list[MiddlewareSpec] = []
        self._frozen = False

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def entries(self) -> tuple[MiddlewareSpec, ...]:
        """Registered middleware, outermost first."""
        return tuple(self._entries)

    def use(self, middleware_class: type, **options: Any) -> MiddlewareChain:
        """Append a middleware inside everything registered so far.

        Raises:
            ChainFrozenError: If the chain was already applied.
        """
        if self._frozen:
            raise ChainFrozenError(
                f"cannot add {middleware_class.__name__}: middleware chain is frozen"
            )
        self._entries.append(MiddlewareSpec(middleware_class, dict(options)))
        return self

    def apply(self, app: Starlette) -> None:
        """Install the chain on ``app`` and freeze it.

        Starlette wraps each newly added middleware around the previous ones,
        so entries are added innermost first.
        """
        for entry in reversed(self._entries):
            app.add_middleware(entry.middleware_class, **entry.options)
        self._frozen = True
