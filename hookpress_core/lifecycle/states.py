"""Lifecycle states and the transitions allowed between them."""

from __future__ import annotations

from enum import Enum


class LifecycleState(Enum):
    DISCOVERED = "discovered"
    INACTIVE = "inactive"
    ACTIVATING = "activating"
    ACTIVE = "active"
    DEACTIVATING = "deactivating"
    UNINSTALLING = "uninstalling"
    ERROR = "error"


_EDGES: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.DISCOVERED: frozenset({LifecycleState.INACTIVE}),
    LifecycleState.INACTIVE: frozenset({LifecycleState.ACTIVATING, LifecycleState.UNINSTALLING}),
    LifecycleState.ACTIVATING: frozenset({LifecycleState.ACTIVE}),
    LifecycleState.ACTIVE: frozenset({LifecycleState.DEACTIVATING}),
    LifecycleState.DEACTIVATING: frozenset({LifecycleState.INACTIVE}),
    LifecycleState.UNINSTALLING: frozenset({LifecycleState.DISCOVERED}),
    LifecycleState.ERROR: frozenset({LifecycleState.INACTIVE}),
}

# States from which an upgrade may run; the component re-enters the same state.
UPGRADABLE = frozenset({LifecycleState.ACTIVE, LifecycleState.INACTIVE})

# Transitions are in flight while a component sits in one of these.
TRANSIENT = frozenset(
    {LifecycleState.ACTIVATING, LifecycleState.DEACTIVATING, LifecycleState.UNINSTALLING}
)


def can_transition(current: LifecycleState, target: LifecycleState) -> bool:
    """Return True when ``current -> target`` is a legal edge.

    Any state may fall into ``ERROR``.
    """

    if target is LifecycleState.ERROR:
        return True
    return target in _EDGES[current]
