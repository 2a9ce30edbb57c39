"""Context handed to a component for one lifecycle transition."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from hookpress_core.hooks import ScopedHooks
from hookpress_core.settings import SettingsAccessor


@dataclass(frozen=True)
class TransitionContext:
    """Resources scoped to a single activate/deactivate/upgrade/uninstall call."""

    component_id: str
    stage: str
    hooks: ScopedHooks
    settings: SettingsAccessor
    logger: logging.Logger
    resources: Mapping[str, Any] = field(default_factory=dict)
    from_version: str | None = None
    to_version: str | None = None

    def resource(self, name: str, default: Any | None = None) -> Any | None:
        return self.resources.get(name, default)
