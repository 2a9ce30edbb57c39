"""Priority-ordered action and filter hooks."""

from .context import HookContext
from .errors import (
    DuplicateHandler,
    HandlerFailure,
    HandlerTimeout,
    HookError,
    TypeMismatch,
)
from .keys import HookKey, action_key, filter_key
from .registry import HookRegistry, ScopedHooks
from .store import DEFAULT_PRIORITY, Handler, HandlerStore

__all__ = [
    "DEFAULT_PRIORITY",
    "DuplicateHandler",
    "Handler",
    "HandlerFailure",
    "HandlerStore",
    "HandlerTimeout",
    "HookContext",
    "HookError",
    "HookKey",
    "HookRegistry",
    "ScopedHooks",
    "TypeMismatch",
    "action_key",
    "filter_key",
]
