"""Host application context that wires the registry, settings and lifecycle."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

from .config import HookpressConfig
from .hooks import HookContext, HookError, HookRegistry, catalog
from .lifecycle import (
    Component,
    ComponentCandidate,
    ComponentLoadError,
    ComponentLoader,
    LifecycleError,
    LifecycleManager,
    LifecycleState,
    LifecycleStateStore,
    scan_components,
)
from .lifecycle.state_store import state_file_path
from .paths import UserDirs
from .settings import SettingsStore
from .workspace import WorkspaceLayout, WorkspaceResolver

SETTINGS_FILE_NAME = "settings.json"


@dataclass(frozen=True)
class AppStatus:
    workspace_root: Path
    components: Sequence[tuple[str, str]]
    hooks: Sequence[str]


class HookpressApp:
    """Owns one hook registry, one settings store and one lifecycle manager."""

    def __init__(
        self,
        *,
        start_dir: Path | str | None = None,
        user_dirs: UserDirs | None = None,
        cli_overrides: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
        resources: Mapping[str, Any] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger("hookpress_core.app")
        self.user_dirs = user_dirs or UserDirs()
        self.resolver = WorkspaceResolver(
            user_dirs=self.user_dirs,
            cli_overrides=dict(cli_overrides or {}),
            env=os.environ if env is None else env,
        )
        normalized_start = Path(start_dir) if isinstance(start_dir, str) else start_dir
        workspace_root = self.resolver.ensure_workspace(normalized_start)
        self.layout = WorkspaceLayout.from_root(workspace_root, self.resolver.config_filename)
        self.config = HookpressConfig.resolve(self.resolver, workspace_root)

        self.registry = HookRegistry(timeout=self.config.handler_timeout)
        for key in catalog.STANDARD_HOOKS:
            self.registry.declare(key)
        self.settings = SettingsStore(self.layout.state_dir / SETTINGS_FILE_NAME)
        self.lifecycle = LifecycleManager(
            self.registry,
            self.settings,
            timeout=self.config.handler_timeout,
            state_store=LifecycleStateStore(state_file_path(self.layout.state_dir)),
            resources=resources,
        )
        self._bootstrapped = False

    @property
    def workspace_root(self) -> Path:
        return self.layout.root

    def component_directories(self) -> list[tuple[str, Path]]:
        return [
            ("workspace", self.config.components_path(self.layout.root)),
            ("user", self.user_dirs.components_dir()),
        ]

    def add_component(self, component: Component, *, source: str = "host") -> None:
        """Register a component supplied in-process instead of from disk."""

        self.lifecycle.discover(component, source=source)
        self._restore(component.info.id)

    async def bootstrap(self, components: Sequence[Component] = ()) -> AppStatus:
        """Discover components, restore persisted state and fire ``hookpress/ready``."""

        if not self._bootstrapped:
            for component in components:
                if self._unclaimed(component.info.id, "host"):
                    self.add_component(component)
            for candidate in scan_components(self.component_directories()):
                if self._unclaimed(candidate.id, candidate.source):
                    self._load_candidate(candidate)
            await self._reactivate()
            self._bootstrapped = True
            await self.registry.do_action(
                catalog.APP_READY,
                HookContext(caller="host"),
                {"workspace": str(self.workspace_root)},
            )
        return self.status()

    async def shutdown(self) -> None:
        await self.registry.do_action(
            catalog.APP_SHUTDOWN,
            HookContext(caller="host"),
            {"workspace": str(self.workspace_root)},
        )

    def status(self) -> AppStatus:
        return AppStatus(
            workspace_root=self.workspace_root,
            components=tuple(
                (record.id, record.state.value) for record in self.lifecycle.records()
            ),
            hooks=self.registry.event_names(),
        )

    # ---------- Internal helpers ----------

    def _unclaimed(self, component_id: str, source: str) -> bool:
        """Earlier sources win; a later component with a taken id is skipped."""

        if not self.lifecycle.has(component_id):
            return True
        owner = self.lifecycle.get(component_id).source
        self.logger.warning(
            "skipping component %s from %s: id already provided by %s",
            component_id,
            source,
            owner,
        )
        return False

    def _load_candidate(self, candidate: ComponentCandidate) -> None:
        try:
            component = ComponentLoader(candidate.manifest, candidate.path).load()
        except ComponentLoadError as exc:
            self.logger.exception("component %s failed to load", candidate.id)
            self.lifecycle.record_failure(
                candidate.id,
                str(exc),
                manifest=candidate.manifest,
                path=candidate.path,
                source=candidate.source,
            )
            return
        self.lifecycle.discover(
            component,
            manifest=candidate.manifest,
            path=candidate.path,
            source=candidate.source,
        )
        self._restore(candidate.id)

    def _restore(self, component_id: str) -> None:
        stored = self.lifecycle.stored_state(component_id)
        try:
            if stored is None:
                self.lifecycle.load(component_id)
            else:
                self.lifecycle.restore(component_id, stored)
        except LifecycleError as exc:
            self.logger.error("component %s could not be loaded: %s", component_id, exc)

    async def _reactivate(self) -> None:
        for record in self.lifecycle.records():
            stored = self.lifecycle.stored_state(record.id)
            if stored is None or record.state is not LifecycleState.INACTIVE:
                continue
            target = record.component.info.version if record.component else None
            try:
                if target and record.version != target:
                    await self.lifecycle.upgrade(record.id, target)
                if stored.state is LifecycleState.ACTIVE:
                    await self.lifecycle.activate(record.id)
            except (LifecycleError, HookError) as exc:
                # announcement listeners may fail after the component is already active
                self.logger.error("component %s could not be restored: %s", record.id, exc)
