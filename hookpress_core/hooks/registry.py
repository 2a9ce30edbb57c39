"""Hook registry combining the handler store, action dispatch and filters."""

from __future__ import annotations

import logging
import threading
from typing import Any

from .context import HookContext
from .dispatch import ActionDispatcher
from .errors import TypeMismatch
from .filters import FilterPipeline
from .keys import ACTION, FILTER, HookKey, coerce_key
from .store import DEFAULT_PRIORITY, Handler, HandlerCallback, HandlerStore

logger = logging.getLogger(__name__)

HOST_OWNER = "host"


class HookRegistry:
    """Registry of action and filter handlers owned by one host application.

    A name is bound to a single :class:`HookKey` the first time it is declared
    or registered; later registrations under a different kind or type are
    rejected with :class:`TypeMismatch` before any dispatch happens.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self.store = HandlerStore()
        self._dispatcher = ActionDispatcher(self.store, timeout=timeout)
        self._pipeline = FilterPipeline(self.store, timeout=timeout)
        self._keys: dict[str, HookKey[Any]] = {}
        self._keys_lock = threading.Lock()

    @property
    def timeout(self) -> float | None:
        return self._dispatcher.timeout

    @timeout.setter
    def timeout(self, value: float | None) -> None:
        self._dispatcher.timeout = value
        self._pipeline.timeout = value

    # ---------- Declaration ----------

    def declare(self, key: HookKey[Any]) -> HookKey[Any]:
        """Bind ``key.name`` to ``key``, returning the effective declaration."""

        with self._keys_lock:
            existing = self._keys.get(key.name)
            if existing is None:
                self._keys[key.name] = key
                return key
            if existing.kind != key.kind:
                raise TypeMismatch(key.name, existing.kind, key.kind)
            if not key.typed:
                return existing
            if existing.typed and existing.value_type is not key.value_type:
                raise TypeMismatch(key.name, existing.value_type, key.value_type)
            self._keys[key.name] = key
            return key

    def key_for(self, name: str) -> HookKey[Any] | None:
        with self._keys_lock:
            return self._keys.get(name)

    def _resolve(self, name_or_key: str | HookKey[Any], kind: str) -> HookKey[Any]:
        key = coerce_key(name_or_key, kind)
        if key.kind != kind:
            raise TypeMismatch(key.name, kind, key.kind)
        declared = self.key_for(key.name)
        if declared is None:
            return key
        if declared.kind != kind:
            raise TypeMismatch(key.name, declared.kind, kind)
        if key.typed and declared.value_type is not key.value_type:
            raise TypeMismatch(key.name, declared.value_type, key.value_type)
        return declared

    # ---------- Registration ----------

    def add_action(
        self,
        name_or_key: str | HookKey[Any],
        callback: HandlerCallback,
        priority: int = DEFAULT_PRIORITY,
        *,
        owner: str = HOST_OWNER,
        allow_duplicate: bool = False,
    ) -> Handler:
        return self._add(name_or_key, ACTION, callback, priority, owner, allow_duplicate)

    def add_filter(
        self,
        name_or_key: str | HookKey[Any],
        callback: HandlerCallback,
        priority: int = DEFAULT_PRIORITY,
        *,
        owner: str = HOST_OWNER,
        allow_duplicate: bool = False,
    ) -> Handler:
        return self._add(name_or_key, FILTER, callback, priority, owner, allow_duplicate)

    def _add(
        self,
        name_or_key: str | HookKey[Any],
        kind: str,
        callback: HandlerCallback,
        priority: int,
        owner: str,
        allow_duplicate: bool,
    ) -> Handler:
        key = self.declare(coerce_key(name_or_key, kind))
        handler = self.store.register(
            key.name,
            callback,
            priority,
            owner=owner,
            allow_duplicate=allow_duplicate,
        )
        logger.debug("%s %s registered by %s at priority %d", kind, key.name, owner, priority)
        return handler

    def remove_action(
        self,
        name_or_key: str | HookKey[Any],
        target: Handler | HandlerCallback,
        *,
        owner: str | None = None,
    ) -> bool:
        return self.store.unregister(coerce_key(name_or_key, ACTION).name, target, owner=owner)

    def remove_filter(
        self,
        name_or_key: str | HookKey[Any],
        target: Handler | HandlerCallback,
        *,
        owner: str | None = None,
    ) -> bool:
        return self.store.unregister(coerce_key(name_or_key, FILTER).name, target, owner=owner)

    def remove_owner(self, owner: str) -> tuple[Handler, ...]:
        removed = self.store.remove_owner(owner)
        if removed:
            logger.debug("removed %d handlers owned by %s", len(removed), owner)
        return removed

    def scoped(self, owner: str) -> "ScopedHooks":
        return ScopedHooks(self, owner)

    # ---------- Lookup ----------

    def handlers(self, name: str) -> tuple[Handler, ...]:
        return self.store.snapshot(name)

    def has_handlers(self, name: str) -> bool:
        return bool(self.store.snapshot(name))

    def event_names(self) -> tuple[str, ...]:
        return self.store.event_names()

    # ---------- Dispatch ----------

    async def do_action(
        self,
        name_or_key: str | HookKey[Any],
        context: HookContext | None = None,
        payload: Any = None,
    ) -> int:
        """Run the action handlers for a name; returns how many ran."""

        key = self._resolve(name_or_key, ACTION)
        return await self._dispatcher.dispatch(key, context or HookContext(), payload)

    async def apply_filters(
        self,
        name_or_key: str | HookKey[Any],
        context: HookContext | None,
        value: Any,
    ) -> Any:
        """Thread ``value`` through the filter handlers for a name."""

        key = self._resolve(name_or_key, FILTER)
        return await self._pipeline.apply(key, context or HookContext(), value)


class ScopedHooks:
    """Registers handlers on behalf of one owner and remembers what it added."""

    def __init__(self, registry: HookRegistry, owner: str) -> None:
        self.registry = registry
        self.owner = owner
        self._registered: list[Handler] = []

    @property
    def registered(self) -> tuple[Handler, ...]:
        return tuple(self._registered)

    def add_action(
        self,
        name_or_key: str | HookKey[Any],
        callback: HandlerCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> Handler:
        handler = self.registry.add_action(name_or_key, callback, priority, owner=self.owner)
        self._registered.append(handler)
        return handler

    def add_filter(
        self,
        name_or_key: str | HookKey[Any],
        callback: HandlerCallback,
        priority: int = DEFAULT_PRIORITY,
    ) -> Handler:
        handler = self.registry.add_filter(name_or_key, callback, priority, owner=self.owner)
        self._registered.append(handler)
        return handler

    def rollback(self) -> int:
        """Unregister everything this scope added."""

        removed = 0
        for handler in reversed(self._registered):
            if self.registry.store.unregister(handler.event_name, handler):
                removed += 1
        self._registered.clear()
        return removed
