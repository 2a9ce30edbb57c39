"""Tests for the component lifecycle state machine."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from hookpress_core.hooks import HookRegistry, catalog
from hookpress_core.lifecycle import (
    Component,
    ComponentInfo,
    InvalidTransition,
    LifecycleFailure,
    LifecycleManager,
    LifecycleState,
    LifecycleStateStore,
    UnknownComponent,
)
from hookpress_core.settings import SettingsStore


class RecordingComponent(Component):
    """Component whose hooks can be told to fail."""

    def __init__(self, component_id: str = "recorder", version: str = "1.0.0") -> None:
        self._info = ComponentInfo(id=component_id, name="Recorder", version=version)
        self.calls: list[str] = []
        self.fail_on: set[str] = set()
        self.upgrades: list[tuple[str | None, str | None]] = []

    @property
    def info(self) -> ComponentInfo:
        return self._info

    def _maybe_fail(self, stage: str) -> None:
        self.calls.append(stage)
        if stage in self.fail_on:
            raise RuntimeError(f"{stage} exploded")

    async def activate(self, ctx) -> None:
        ctx.hooks.add_filter("title", lambda hook_ctx, value: value.upper(), priority=10)
        ctx.hooks.add_action("save", lambda hook_ctx, payload: None)
        ctx.settings.set("activated", True)
        self._maybe_fail("activate")

    async def deactivate(self, ctx) -> None:
        self._maybe_fail("deactivate")

    async def upgrade(self, ctx) -> None:
        self.upgrades.append((ctx.from_version, ctx.to_version))
        self._maybe_fail("upgrade")

    async def uninstall(self, ctx) -> None:
        self._maybe_fail("uninstall")


def _manager(**kwargs) -> LifecycleManager:
    return LifecycleManager(HookRegistry(), SettingsStore(), **kwargs)


def _loaded(manager: LifecycleManager, component: Component) -> str:
    manager.discover(component)
    manager.load(component.info.id)
    return component.info.id


def test_discovered_component_loads_to_inactive() -> None:
    manager = _manager()
    component = RecordingComponent()

    record = manager.discover(component)
    assert record.state is LifecycleState.DISCOVERED

    manager.load("recorder")
    assert manager.state_of("recorder") is LifecycleState.INACTIVE
    assert manager.get("recorder").version == "1.0.0"


def test_activation_success_reaches_active_with_handlers() -> None:
    manager = _manager()
    component_id = _loaded(manager, RecordingComponent())

    record = asyncio.run(manager.activate(component_id))

    assert record.state is LifecycleState.ACTIVE
    assert len(record.handlers) == 2
    assert manager.registry.has_handlers("title")
    assert {handler.owner for handler in manager.registry.handlers("save")} == {"recorder"}


def test_failed_activation_removes_partial_registration() -> None:
    manager = _manager()
    component = RecordingComponent()
    component.fail_on.add("activate")
    component_id = _loaded(manager, component)
    manager.registry.add_filter("title", lambda hook_ctx, value: value, owner="host")

    with pytest.raises(LifecycleFailure) as excinfo:
        asyncio.run(manager.activate(component_id))

    record = manager.get(component_id)
    assert excinfo.value.stage == "activate"
    assert record.state is LifecycleState.ERROR
    assert record.error == "activate exploded"
    assert record.handlers == ()
    assert [handler.owner for handler in manager.registry.handlers("title")] == ["host"]
    assert not manager.registry.has_handlers("save")


def test_failed_activation_drops_handlers_registered_directly_under_its_id() -> None:
    class Direct(RecordingComponent):
        async def activate(self, ctx) -> None:
            ctx.hooks.registry.add_action(
                "save", lambda hook_ctx, payload: None, owner=ctx.component_id
            )
            raise RuntimeError("database unavailable")

    manager = _manager()
    component_id = _loaded(manager, Direct())
    manager.registry.add_action("save", lambda hook_ctx, payload: None, owner="host")

    with pytest.raises(LifecycleFailure):
        asyncio.run(manager.activate(component_id))

    assert manager.state_of(component_id) is LifecycleState.ERROR
    assert [handler.owner for handler in manager.registry.handlers("save")] == ["host"]


def test_load_failure_cannot_replace_a_loaded_component() -> None:
    manager = _manager()
    component_id = _loaded(manager, RecordingComponent())
    asyncio.run(manager.activate(component_id))

    with pytest.raises(InvalidTransition):
        manager.record_failure(component_id, "unable to initialize")

    record = manager.get(component_id)
    assert record.state is LifecycleState.ACTIVE
    assert record.error is None
    assert manager.registry.has_handlers("title")


def test_hook_returning_false_counts_as_failure() -> None:
    class Refuses(RecordingComponent):
        async def activate(self, ctx) -> bool:
            ctx.hooks.add_action("save", lambda hook_ctx, payload: None)
            return False

    manager = _manager()
    component_id = _loaded(manager, Refuses())

    with pytest.raises(LifecycleFailure):
        asyncio.run(manager.activate(component_id))

    assert manager.state_of(component_id) is LifecycleState.ERROR
    assert not manager.registry.has_handlers("save")


def test_deactivate_returns_to_inactive_and_drops_handlers() -> None:
    manager = _manager()
    component_id = _loaded(manager, RecordingComponent())
    asyncio.run(manager.activate(component_id))

    record = asyncio.run(manager.deactivate(component_id))

    assert record.state is LifecycleState.INACTIVE
    assert manager.registry.event_names() == ()


def test_deactivation_failure_enters_error_and_drops_handlers() -> None:
    manager = _manager()
    component = RecordingComponent()
    component_id = _loaded(manager, component)
    asyncio.run(manager.activate(component_id))
    component.fail_on.add("deactivate")

    with pytest.raises(LifecycleFailure):
        asyncio.run(manager.deactivate(component_id))

    assert manager.state_of(component_id) is LifecycleState.ERROR
    assert manager.registry.event_names() == ()


def test_uninstall_returns_to_discovered_and_purges_settings() -> None:
    manager = _manager()
    component_id = _loaded(manager, RecordingComponent())
    asyncio.run(manager.activate(component_id))
    asyncio.run(manager.deactivate(component_id))
    assert manager.settings.get(component_id, "activated") is True

    record = asyncio.run(manager.uninstall(component_id))

    assert record.state is LifecycleState.DISCOVERED
    assert record.version is None
    assert manager.settings.items(component_id) == {}

    manager.load(component_id)
    assert manager.state_of(component_id) is LifecycleState.INACTIVE


def test_uninstall_failure_enters_error_not_discovered() -> None:
    manager = _manager()
    component = RecordingComponent()
    component.fail_on.add("uninstall")
    component_id = _loaded(manager, component)

    with pytest.raises(LifecycleFailure) as excinfo:
        asyncio.run(manager.uninstall(component_id))

    record = manager.get(component_id)
    assert excinfo.value.stage == "uninstall"
    assert record.state is LifecycleState.ERROR
    assert record.error == "uninstall exploded"


@pytest.mark.parametrize("activate_first", [False, True])
def test_upgrade_keeps_state_and_records_version(activate_first: bool) -> None:
    manager = _manager()
    component = RecordingComponent()
    component_id = _loaded(manager, component)
    if activate_first:
        asyncio.run(manager.activate(component_id))
    before = manager.state_of(component_id)

    record = asyncio.run(manager.upgrade(component_id, "2.0.0"))

    assert record.state is before
    assert record.version == "2.0.0"
    assert component.upgrades == [("1.0.0", "2.0.0")]


def test_upgrade_failure_leaves_state_untouched() -> None:
    manager = _manager()
    component = RecordingComponent()
    component_id = _loaded(manager, component)
    asyncio.run(manager.activate(component_id))
    component.fail_on.add("upgrade")

    with pytest.raises(LifecycleFailure) as excinfo:
        asyncio.run(manager.upgrade(component_id, "2.0.0"))

    record = manager.get(component_id)
    assert excinfo.value.stage == "upgrade"
    assert record.state is LifecycleState.ACTIVE
    assert record.version == "1.0.0"
    assert manager.registry.has_handlers("title")


@pytest.mark.parametrize(
    "action",
    ["deactivate", "uninstall_active", "activate_twice", "upgrade_error"],
)
def test_invalid_transitions_are_rejected(action: str) -> None:
    manager = _manager()
    component = RecordingComponent()
    component_id = _loaded(manager, component)

    async def scenario() -> None:
        if action == "deactivate":
            await manager.deactivate(component_id)
        elif action == "uninstall_active":
            await manager.activate(component_id)
            await manager.uninstall(component_id)
        elif action == "activate_twice":
            await manager.activate(component_id)
            await manager.activate(component_id)
        else:
            component.fail_on.add("uninstall")
            with pytest.raises(LifecycleFailure):
                await manager.uninstall(component_id)
            await manager.upgrade(component_id, "2.0.0")

    with pytest.raises(InvalidTransition):
        asyncio.run(scenario())


def test_reset_moves_error_back_to_inactive() -> None:
    manager = _manager()
    component = RecordingComponent()
    component.fail_on.add("activate")
    component_id = _loaded(manager, component)
    with pytest.raises(LifecycleFailure):
        asyncio.run(manager.activate(component_id))

    component.fail_on.clear()
    asyncio.run(manager.reset(component_id))
    record = asyncio.run(manager.activate(component_id))

    assert record.state is LifecycleState.ACTIVE
    assert record.error is None
    with pytest.raises(InvalidTransition):
        asyncio.run(manager.reset(component_id))


def test_concurrent_transitions_are_serialized() -> None:
    manager = _manager()
    component_id = _loaded(manager, RecordingComponent())

    async def scenario() -> list[object]:
        return await asyncio.gather(
            manager.activate(component_id),
            manager.activate(component_id),
            return_exceptions=True,
        )

    first, second = asyncio.run(scenario())

    assert first.state is LifecycleState.ACTIVE
    assert isinstance(second, InvalidTransition)
    assert second.state is LifecycleState.ACTIVE
    assert len(manager.registry.handlers("save")) == 1


def test_hanging_lifecycle_hook_times_out() -> None:
    class Hangs(RecordingComponent):
        async def activate(self, ctx) -> None:
            ctx.hooks.add_action("save", lambda hook_ctx, payload: None)
            await asyncio.sleep(10)

    manager = _manager(timeout=0.05)
    component_id = _loaded(manager, Hangs())

    with pytest.raises(LifecycleFailure) as excinfo:
        asyncio.run(manager.activate(component_id))

    assert "exceeded" in str(excinfo.value)
    assert manager.state_of(component_id) is LifecycleState.ERROR
    assert not manager.registry.has_handlers("save")


def test_successful_transitions_are_announced() -> None:
    manager = _manager()
    announced: list[tuple[str, str]] = []
    for key in (
        catalog.COMPONENT_ACTIVATED,
        catalog.COMPONENT_DEACTIVATED,
        catalog.COMPONENT_UNINSTALLED,
    ):
        manager.registry.add_action(
            key,
            lambda ctx, component_id, name=key.name: announced.append((name, component_id)),
        )
    component_id = _loaded(manager, RecordingComponent())

    async def scenario() -> None:
        await manager.activate(component_id)
        await manager.deactivate(component_id)
        await manager.uninstall(component_id)

    asyncio.run(scenario())

    assert announced == [
        ("hookpress/component-activated", "recorder"),
        ("hookpress/component-deactivated", "recorder"),
        ("hookpress/component-uninstalled", "recorder"),
    ]


def test_transition_context_carries_host_resources() -> None:
    seen: dict[str, object] = {}

    class NeedsDatabase(RecordingComponent):
        async def activate(self, ctx) -> None:
            seen["db"] = ctx.resource("db")
            seen["stage"] = ctx.stage
            seen["namespace"] = ctx.settings.namespace

    manager = _manager(resources={"db": "postgres://local"})
    component_id = _loaded(manager, NeedsDatabase())
    asyncio.run(manager.activate(component_id))

    assert seen == {"db": "postgres://local", "stage": "activate", "namespace": "recorder"}


def test_unknown_component_is_reported() -> None:
    manager = _manager()
    with pytest.raises(UnknownComponent):
        asyncio.run(manager.activate("ghost"))


def test_state_is_persisted_after_each_transition(tmp_path: Path) -> None:
    store = LifecycleStateStore(tmp_path / "components.json")
    manager = _manager(state_store=store)
    component_id = _loaded(manager, RecordingComponent())
    asyncio.run(manager.activate(component_id))

    stored = store.read()[component_id]
    assert stored.state is LifecycleState.ACTIVE
    assert stored.version == "1.0.0"

    restarted = _manager(state_store=store)
    assert restarted.stored_state(component_id) == stored
