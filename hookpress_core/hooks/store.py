"""Priority-ordered handler lists keyed by event name."""

from __future__ import annotations

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict

from .errors import DuplicateHandler

HandlerCallback = Callable[..., Any]

DEFAULT_PRIORITY = 0


@dataclass(frozen=True)
class Handler:
    """A callback bound to an event name, a priority and its owner."""

    event_name: str
    callback: HandlerCallback = field(compare=False)
    priority: int
    owner: str
    order: int

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.order)

    def matches(self, callback: HandlerCallback, owner: str | None = None) -> bool:
        if self.callback is not callback and self.callback != callback:
            return False
        return owner is None or owner == self.owner


class HandlerStore:
    """Copy-on-write handler lists.

    Each event name maps to an immutable tuple that is replaced wholesale on
    every mutation, so a dispatch walking one snapshot never observes a
    concurrent edit.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._handlers: dict[str, tuple[Handler, ...]] = {}
        self._sequence: DefaultDict[str, int] = defaultdict(int)

    def register(
        self,
        event_name: str,
        callback: HandlerCallback,
        priority: int = DEFAULT_PRIORITY,
        *,
        owner: str = "host",
        allow_duplicate: bool = False,
    ) -> Handler:
        """Add ``callback`` and keep the event's list sorted by priority, then order."""

        if not callable(callback):
            raise TypeError("handler callback must be callable.")
        with self._lock:
            current = self._handlers.get(event_name, ())
            if not allow_duplicate and any(
                handler.matches(callback, owner) for handler in current
            ):
                raise DuplicateHandler(
                    f"{owner!r} already registered {_callback_name(callback)} on {event_name!r}"
                )
            order = self._sequence[event_name]
            self._sequence[event_name] = order + 1
            handler = Handler(
                event_name=event_name,
                callback=callback,
                priority=int(priority),
                owner=owner,
                order=order,
            )
            self._handlers[event_name] = tuple(
                sorted((*current, handler), key=lambda item: item.sort_key)
            )
            return handler

    def unregister(
        self,
        event_name: str,
        target: Handler | HandlerCallback,
        *,
        owner: str | None = None,
    ) -> bool:
        """Remove matching entries; returns False when nothing matched."""

        with self._lock:
            current = self._handlers.get(event_name, ())
            if isinstance(target, Handler):
                remaining = tuple(handler for handler in current if handler != target)
            else:
                remaining = tuple(
                    handler for handler in current if not handler.matches(target, owner)
                )
            if len(remaining) == len(current):
                return False
            self._publish(event_name, remaining)
            return True

    def remove_owner(self, owner: str) -> tuple[Handler, ...]:
        """Drop every handler registered by ``owner`` across all events."""

        removed: list[Handler] = []
        with self._lock:
            for event_name in list(self._handlers):
                current = self._handlers[event_name]
                kept = tuple(handler for handler in current if handler.owner != owner)
                if len(kept) != len(current):
                    removed.extend(handler for handler in current if handler.owner == owner)
                    self._publish(event_name, kept)
        return tuple(removed)

    def snapshot(self, event_name: str) -> tuple[Handler, ...]:
        with self._lock:
            return self._handlers.get(event_name, ())

    def event_names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._handlers))

    def owned_by(self, owner: str) -> tuple[Handler, ...]:
        with self._lock:
            return tuple(
                handler
                for event_name in sorted(self._handlers)
                for handler in self._handlers[event_name]
                if handler.owner == owner
            )

    def _publish(self, event_name: str, handlers: tuple[Handler, ...]) -> None:
        if handlers:
            self._handlers[event_name] = handlers
        else:
            self._handlers.pop(event_name, None)


def _callback_name(callback: HandlerCallback) -> str:
    return getattr(callback, "__qualname__", None) or repr(callback)
