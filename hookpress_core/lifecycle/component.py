"""Base class for host components (plugins and themes)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import TransitionContext


@dataclass(frozen=True)
class ComponentInfo:
    """Identity of a component.

    Attributes:
        id:       Namespace for the component's hooks and settings, e.g. "seo-tools".
        name:     Human-readable name.
        version:  Version string passed to upgrade hooks.
        kind:     "plugin" or "theme".
    """

    id: str
    name: str
    version: str
    kind: str = "plugin"


class Component(ABC):
    """Abstract base class every component subclasses.

    Only ``info`` is required. The lifecycle hooks default to no-ops so a
    component overrides just the ones it needs. A hook signals failure by
    raising; returning ``False`` is treated the same way.
    """

    @property
    @abstractmethod
    def info(self) -> ComponentInfo:
        """Return the component's identity."""
        ...

    async def activate(self, ctx: TransitionContext) -> bool | None:  # noqa: B027
        """Register hooks through ``ctx.hooks`` and prepare resources."""

    async def deactivate(self, ctx: TransitionContext) -> bool | None:  # noqa: B027
        """Release resources; the manager drops the component's hooks afterwards."""

    async def upgrade(self, ctx: TransitionContext) -> bool | None:  # noqa: B027
        """Migrate stored data from ``ctx.from_version`` to ``ctx.to_version``."""

    async def uninstall(self, ctx: TransitionContext) -> bool | None:  # noqa: B027
        """Remove persistent data; the manager purges settings afterwards."""
