"""Hook dispatch registry and component lifecycle for a content-management host."""

from .app import AppStatus, HookpressApp
from .config import ConfigError, HookpressConfig
from .hooks import HookContext, HookRegistry, action_key, filter_key
from .lifecycle import Component, ComponentInfo, LifecycleManager, LifecycleState
from .paths import UserDirs
from .settings import SettingsAccessor, SettingsError, SettingsStore
from .workspace import WorkspaceLayout, WorkspaceResolver

__all__ = [
    "AppStatus",
    "Component",
    "ComponentInfo",
    "ConfigError",
    "HookContext",
    "HookRegistry",
    "HookpressApp",
    "HookpressConfig",
    "LifecycleManager",
    "LifecycleState",
    "SettingsAccessor",
    "SettingsError",
    "SettingsStore",
    "UserDirs",
    "WorkspaceLayout",
    "WorkspaceResolver",
    "action_key",
    "filter_key",
]
