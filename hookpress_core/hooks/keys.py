"""Typed keys that bind an event name to its payload or value type."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")

ACTION = "action"
FILTER = "filter"


@dataclass(frozen=True)
class HookKey(Generic[T]):
    """Event name plus the kind of hook and the type flowing through it."""

    name: str
    value_type: type = object
    kind: str = ACTION

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("hook name cannot be empty.")
        if self.kind not in (ACTION, FILTER):
            raise ValueError(f"unknown hook kind {self.kind!r}.")
        if not isinstance(self.value_type, type):
            raise TypeError("value_type must be a class type.")

    @property
    def typed(self) -> bool:
        return self.value_type is not object

    def accepts(self, value: Any) -> bool:
        return isinstance(value, self.value_type)


def action_key(name: str, payload_type: type = object) -> HookKey[Any]:
    """Declare an action hook whose payload is an instance of ``payload_type``."""

    return HookKey(name=name, value_type=payload_type, kind=ACTION)


def filter_key(name: str, value_type: type = object) -> HookKey[Any]:
    """Declare a filter hook that threads a ``value_type`` through its handlers."""

    return HookKey(name=name, value_type=value_type, kind=FILTER)


def coerce_key(name_or_key: str | HookKey[Any], kind: str) -> HookKey[Any]:
    if isinstance(name_or_key, HookKey):
        return name_or_key
    return HookKey(name=name_or_key, kind=kind)
