"""Invoke a single handler with failure wrapping and a time cap."""

from __future__ import annotations

import asyncio
import inspect
from typing import Any

from .errors import HandlerFailure, HandlerTimeout
from .store import Handler


def _is_coroutine_callable(callback: Any) -> bool:
    return inspect.iscoroutinefunction(callback) or inspect.iscoroutinefunction(
        getattr(callback, "__call__", None)
    )


async def _run(handler: Handler, args: tuple[Any, ...], offload: bool) -> Any:
    try:
        if offload and not _is_coroutine_callable(handler.callback):
            result = await asyncio.to_thread(handler.callback, *args)
        else:
            result = handler.callback(*args)
        if inspect.isawaitable(result):
            result = await result
    except Exception as exc:
        raise HandlerFailure(handler.event_name, handler.owner, exc) from exc
    return result


async def invoke_handler(handler: Handler, timeout: float | None, *args: Any) -> Any:
    """Call ``handler`` and await its result when it returns an awaitable.

    With a ``timeout`` set, plain functions run in a worker thread so that a
    blocking handler can be abandoned too. The abandoned thread is not
    interrupted; only the dispatch stops waiting for it.
    """

    if timeout is None:
        return await _run(handler, args, offload=False)
    try:
        return await asyncio.wait_for(_run(handler, args, offload=True), timeout)
    except asyncio.TimeoutError as exc:
        raise HandlerTimeout(handler.event_name, handler.owner, timeout) from exc
