"""Component lifecycle error types."""

from __future__ import annotations


class LifecycleError(Exception):
    """Base type for component lifecycle failures."""


class ComponentManifestError(LifecycleError):
    """Raised when a component manifest cannot be loaded or validated."""


class ComponentLoadError(LifecycleError):
    """Raised when a component entrypoint cannot be imported or instantiated."""


class UnknownComponent(LifecycleError, KeyError):
    """Raised when a lifecycle call names a component that was never discovered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown component"


class InvalidTransition(LifecycleError):
    """Raised when a transition is requested from a state that does not permit it."""

    def __init__(self, component_id: str, state: object, action: str) -> None:
        state_name = getattr(state, "value", state)
        super().__init__(f"cannot {action} {component_id!r} while {state_name}")
        self.component_id = component_id
        self.state = state
        self.action = action


class LifecycleFailure(LifecycleError):
    """Raised when a lifecycle hook fails; ``stage`` names the hook."""

    def __init__(self, stage: str, component_id: str, cause: BaseException | str) -> None:
        super().__init__(f"{stage} failed for {component_id!r}: {cause}")
        self.stage = stage
        self.component_id = component_id
        self.cause = cause
