"""Component lifecycle: discovery, activation, upgrade and uninstall."""

from .component import Component, ComponentInfo
from .context import TransitionContext
from .errors import (
    ComponentLoadError,
    ComponentManifestError,
    InvalidTransition,
    LifecycleError,
    LifecycleFailure,
    UnknownComponent,
)
from .loader import ComponentCandidate, ComponentLoader, scan_components
from .manager import ComponentRecord, LifecycleManager
from .manifest import ComponentManifest
from .state_store import LifecycleStateStore, StoredState
from .states import LifecycleState, can_transition

__all__ = [
    "Component",
    "ComponentCandidate",
    "ComponentInfo",
    "ComponentLoadError",
    "ComponentLoader",
    "ComponentManifest",
    "ComponentManifestError",
    "ComponentRecord",
    "InvalidTransition",
    "LifecycleError",
    "LifecycleFailure",
    "LifecycleManager",
    "LifecycleState",
    "LifecycleStateStore",
    "StoredState",
    "TransitionContext",
    "UnknownComponent",
    "can_transition",
    "scan_components",
]
