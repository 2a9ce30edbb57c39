"""Errors raised while registering or dispatching hook handlers."""

from __future__ import annotations


class HookError(Exception):
    """Base class for hook registry errors."""


class HandlerFailure(HookError):
    """Raised when a handler fails; remaining handlers are not invoked."""

    def __init__(self, event_name: str, owner: str, cause: BaseException) -> None:
        super().__init__(f"handler from {owner!r} failed on {event_name!r}: {cause}")
        self.event_name = event_name
        self.owner = owner
        self.cause = cause


class HandlerTimeout(HandlerFailure):
    """Raised when an awaitable handler exceeds the configured time cap."""

    def __init__(self, event_name: str, owner: str, timeout: float) -> None:
        cause = TimeoutError(f"exceeded {timeout:g}s")
        super().__init__(event_name, owner, cause)
        self.timeout = timeout


class TypeMismatch(HookError):
    """Raised when a value or key does not match the type bound to an event name."""

    def __init__(
        self,
        event_name: str,
        expected: object,
        actual: object,
        *,
        owner: str | None = None,
    ) -> None:
        where = f" from {owner!r}" if owner else ""
        super().__init__(
            f"{event_name!r} expects {_describe(expected)}, got {_describe(actual)}{where}"
        )
        self.event_name = event_name
        self.expected = expected
        self.actual = actual
        self.owner = owner


class DuplicateHandler(HookError):
    """Raised when the same owner registers the same callback twice for one event."""


def _describe(value: object) -> str:
    if isinstance(value, type):
        return value.__name__
    return str(value)
