"""Component lifecycle state machine."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from hookpress_core.hooks import Handler, HookContext, HookRegistry, ScopedHooks
from hookpress_core.hooks import catalog
from hookpress_core.settings import SettingsStore

from .component import Component
from .context import TransitionContext
from .errors import InvalidTransition, LifecycleFailure, UnknownComponent
from .manifest import ComponentManifest
from .state_store import LifecycleStateStore, StoredState
from .states import UPGRADABLE, LifecycleState, can_transition

ACTIVATE = "activate"
DEACTIVATE = "deactivate"
UPGRADE = "upgrade"
UNINSTALL = "uninstall"


@dataclass
class ComponentRecord:
    """Snapshot of a component known to the manager."""

    id: str
    component: Component | None = None
    manifest: ComponentManifest | None = None
    path: Path | None = None
    source: str = "host"
    state: LifecycleState = LifecycleState.DISCOVERED
    version: str | None = None
    error: str | None = None
    handlers: tuple[Handler, ...] = field(default_factory=tuple)
    pending: bool = True
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)


class LifecycleManager:
    """Drive components through discovery, activation, upgrade and uninstall.

    Transitions on one component are serialized by a per-component lock; a
    second request waits and is then checked against the settled state.
    """

    def __init__(
        self,
        registry: HookRegistry,
        settings: SettingsStore,
        *,
        timeout: float | None = None,
        state_store: LifecycleStateStore | None = None,
        resources: Mapping[str, Any] | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings
        self.timeout = timeout
        self.state_store = state_store
        self.resources = dict(resources or {})
        self._logger = logging.getLogger(__name__)
        self._records: dict[str, ComponentRecord] = {}
        self._stored: dict[str, StoredState] = state_store.read() if state_store else {}
        self._initial: dict[str, StoredState] = dict(self._stored)

    # ---------- Lookup ----------

    def get(self, component_id: str) -> ComponentRecord:
        record = self._records.get(component_id)
        if record is None:
            raise UnknownComponent(f"{component_id!r} has not been discovered")
        return record

    def has(self, component_id: str) -> bool:
        return component_id in self._records

    def state_of(self, component_id: str) -> LifecycleState:
        return self.get(component_id).state

    def records(self) -> tuple[ComponentRecord, ...]:
        return tuple(self._records[key] for key in sorted(self._records))

    def stored_state(self, component_id: str) -> StoredState | None:
        """Return the state persisted by a previous run, if any."""

        return self._initial.get(component_id)

    # ---------- Discovery ----------

    def discover(
        self,
        component: Component,
        *,
        manifest: ComponentManifest | None = None,
        path: Path | None = None,
        source: str = "host",
    ) -> ComponentRecord:
        """Track ``component`` in ``DISCOVERED``; replaces a discovered record."""

        component_id = component.info.id
        existing = self._records.get(component_id)
        if existing is not None and existing.state is not LifecycleState.DISCOVERED:
            raise InvalidTransition(component_id, existing.state, "discover")
        record = ComponentRecord(
            id=component_id,
            component=component,
            manifest=manifest,
            path=path,
            source=source,
        )
        self._records[component_id] = record
        return record

    def record_failure(
        self,
        component_id: str,
        reason: str,
        *,
        manifest: ComponentManifest | None = None,
        path: Path | None = None,
        source: str = "host",
    ) -> ComponentRecord:
        """Track a component that could not be loaded at all."""

        existing = self._records.get(component_id)
        if existing is not None and existing.component is not None:
            raise InvalidTransition(component_id, existing.state, "record a load failure for")
        record = ComponentRecord(
            id=component_id,
            manifest=manifest,
            path=path,
            source=source,
            state=LifecycleState.ERROR,
            version=manifest.version if manifest else None,
            error=reason,
            pending=False,
        )
        self._records[component_id] = record
        self._persist()
        return record

    def load(self, component_id: str, *, version: str | None = None) -> ComponentRecord:
        """Validate a discovered component and move it to ``INACTIVE``."""

        record = self.get(component_id)
        if record.state is not LifecycleState.DISCOVERED:
            raise InvalidTransition(component_id, record.state, "load")
        component = record.component
        assert component is not None
        info = component.info
        if record.manifest is not None and record.manifest.version != info.version:
            reason = (
                f"manifest version {record.manifest.version} does not match "
                f"component version {info.version}"
            )
            self._fail(record, reason)
            raise LifecycleFailure("load", component_id, reason)
        record.version = version or info.version
        self._move(record, LifecycleState.INACTIVE)
        return record

    def restore(self, component_id: str, stored: StoredState) -> ComponentRecord:
        """Apply a persisted non-active state to a discovered record."""

        record = self.get(component_id)
        if stored.state is LifecycleState.ERROR:
            record.version = stored.version
            self._fail(record, stored.error or "unknown error")
        elif stored.state is not LifecycleState.DISCOVERED:
            self.load(component_id, version=stored.version)
        return record

    # ---------- Transitions ----------

    async def activate(self, component_id: str) -> ComponentRecord:
        """``INACTIVE -> ACTIVATING -> ACTIVE``; failure rolls back hooks and ends in ``ERROR``."""

        record = self.get(component_id)
        async with record.lock:
            self._require(record, LifecycleState.ACTIVATING, ACTIVATE)
            self._move(record, LifecycleState.ACTIVATING)
            scope = self.registry.scoped(component_id)
            try:
                await self._run_hook(record, ACTIVATE, self._context(record, ACTIVATE, scope))
            except LifecycleFailure as exc:
                scope.rollback()
                self._fail(record, str(exc.cause))
                raise
            record.handlers = scope.registered
            self._move(record, LifecycleState.ACTIVE)
        await self._announce(catalog.COMPONENT_ACTIVATED, component_id)
        return record

    async def deactivate(self, component_id: str) -> ComponentRecord:
        """``ACTIVE -> DEACTIVATING -> INACTIVE``; the component's handlers are removed."""

        record = self.get(component_id)
        async with record.lock:
            self._require(record, LifecycleState.DEACTIVATING, DEACTIVATE)
            self._move(record, LifecycleState.DEACTIVATING)
            scope = self.registry.scoped(component_id)
            try:
                await self._run_hook(
                    record, DEACTIVATE, self._context(record, DEACTIVATE, scope)
                )
            except LifecycleFailure as exc:
                self._fail(record, str(exc.cause))
                raise
            self.registry.remove_owner(component_id)
            record.handlers = ()
            self._move(record, LifecycleState.INACTIVE)
        await self._announce(catalog.COMPONENT_DEACTIVATED, component_id)
        return record

    async def upgrade(self, component_id: str, to_version: str) -> ComponentRecord:
        """Run the upgrade hook from ``ACTIVE`` or ``INACTIVE``.

        On success the recorded version becomes ``to_version`` and the state is
        unchanged. On failure the state is also unchanged and
        :class:`LifecycleFailure` is raised.
        """

        record = self.get(component_id)
        async with record.lock:
            if record.state not in UPGRADABLE:
                raise InvalidTransition(component_id, record.state, UPGRADE)
            scope = self.registry.scoped(component_id)
            ctx = self._context(
                record,
                UPGRADE,
                scope,
                from_version=record.version,
                to_version=to_version,
            )
            try:
                await self._run_hook(record, UPGRADE, ctx)
            except LifecycleFailure:
                scope.rollback()
                raise
            if record.state is LifecycleState.ACTIVE:
                record.handlers = (*record.handlers, *scope.registered)
            else:
                # inactive components own no handlers
                scope.rollback()
            self._logger.info(
                "upgraded %s from %s to %s", component_id, record.version, to_version
            )
            record.version = to_version
            self._persist()
        return record

    async def uninstall(self, component_id: str) -> ComponentRecord:
        """``INACTIVE -> UNINSTALLING -> DISCOVERED``; handlers and settings are purged."""

        record = self.get(component_id)
        async with record.lock:
            self._require(record, LifecycleState.UNINSTALLING, UNINSTALL)
            self._move(record, LifecycleState.UNINSTALLING)
            scope = self.registry.scoped(component_id)
            try:
                await self._run_hook(record, UNINSTALL, self._context(record, UNINSTALL, scope))
            except LifecycleFailure as exc:
                self._fail(record, str(exc.cause))
                raise
            self.registry.remove_owner(component_id)
            self.settings.remove_all(component_id)
            record.handlers = ()
            record.version = None
            record.error = None
            self._move(record, LifecycleState.DISCOVERED)
        await self._announce(catalog.COMPONENT_UNINSTALLED, component_id)
        return record

    async def reset(self, component_id: str) -> ComponentRecord:
        """Move a component out of ``ERROR`` back to ``INACTIVE`` without running hooks."""

        record = self.get(component_id)
        async with record.lock:
            if record.state is not LifecycleState.ERROR:
                raise InvalidTransition(component_id, record.state, "reset")
            if record.component is None:
                raise InvalidTransition(component_id, record.state, "reset an unloaded")
            self.registry.remove_owner(component_id)
            record.handlers = ()
            record.error = None
            self._move(record, LifecycleState.INACTIVE)
        return record

    # ---------- Internal helpers ----------

    def _require(self, record: ComponentRecord, target: LifecycleState, action: str) -> None:
        if record.component is None or not can_transition(record.state, target):
            raise InvalidTransition(record.id, record.state, action)

    def _move(self, record: ComponentRecord, target: LifecycleState) -> None:
        if not can_transition(record.state, target):
            raise InvalidTransition(record.id, record.state, target.value)
        self._logger.debug("%s: %s -> %s", record.id, record.state.value, target.value)
        record.state = target
        record.pending = False
        if target is not LifecycleState.ERROR:
            record.error = None
        self._persist()

    def _fail(self, record: ComponentRecord, reason: str) -> None:
        # anything registered under the component id goes, not just the scoped handlers
        self.registry.remove_owner(record.id)
        record.handlers = ()
        record.state = LifecycleState.ERROR
        record.pending = False
        record.error = reason
        self._logger.error("component %s entered error state: %s", record.id, reason)
        self._persist()

    def _context(
        self,
        record: ComponentRecord,
        stage: str,
        scope: ScopedHooks,
        *,
        from_version: str | None = None,
        to_version: str | None = None,
    ) -> TransitionContext:
        return TransitionContext(
            component_id=record.id,
            stage=stage,
            hooks=scope,
            settings=self.settings.namespace(record.id),
            logger=logging.getLogger(f"{__name__}.{record.id}"),
            resources=dict(self.resources),
            from_version=from_version,
            to_version=to_version,
        )

    async def _run_hook(self, record: ComponentRecord, stage: str, ctx: TransitionContext) -> None:
        component = record.component
        assert component is not None
        hook = getattr(component, stage)
        try:
            result = hook(ctx)
            if inspect.isawaitable(result):
                if self.timeout is None:
                    result = await result
                else:
                    try:
                        result = await asyncio.wait_for(result, self.timeout)
                    except asyncio.TimeoutError as exc:
                        raise LifecycleFailure(
                            stage, record.id, f"hook exceeded {self.timeout:g}s"
                        ) from exc
        except LifecycleFailure:
            raise
        except Exception as exc:
            raise LifecycleFailure(stage, record.id, exc) from exc
        if result is False:
            raise LifecycleFailure(stage, record.id, "hook reported failure")

    async def _announce(self, key: Any, component_id: str) -> None:
        await self.registry.do_action(key, HookContext(caller="lifecycle"), component_id)

    def _persist(self) -> None:
        if self.state_store is None:
            return
        # records still waiting to be restored keep their stored state
        for record in self._records.values():
            if not record.pending:
                self._stored[record.id] = StoredState(
                    state=record.state,
                    version=record.version,
                    error=record.error,
                )
        self.state_store.write(dict(self._stored))
