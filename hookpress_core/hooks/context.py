"""Per-invocation context handed to every handler of a dispatch."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


def _new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class HookContext:
    """Caller identity and request-scoped resources.

    Handlers may read the context; the registry never mutates it.
    """

    caller: str = "host"
    request_id: str = field(default_factory=_new_request_id)
    resources: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "resources", MappingProxyType(dict(self.resources)))

    def resource(self, name: str, default: Any | None = None) -> Any | None:
        return self.resources.get(name, default)
