"""Value-threading pipeline for filter handlers."""

from __future__ import annotations

import logging
from typing import Any

from .context import HookContext
from .errors import TypeMismatch
from .invoke import invoke_handler
from .keys import HookKey
from .store import HandlerStore

logger = logging.getLogger(__name__)


class FilterPipeline:
    """Thread a value through filter handlers in priority order."""

    def __init__(self, store: HandlerStore, *, timeout: float | None = None) -> None:
        self.store = store
        self.timeout = timeout

    async def apply(self, key: HookKey[Any], context: HookContext, initial_value: Any) -> Any:
        """Return the output of the last handler, or ``initial_value`` when none exist.

        The expected type is the key's declared type, or the type of
        ``initial_value`` for untyped names. A handler that returns anything
        else halts the pipeline with :class:`TypeMismatch`.
        """

        expected = key.value_type if key.typed else type(initial_value)
        if not isinstance(initial_value, expected):
            raise TypeMismatch(key.name, expected, type(initial_value))

        handlers = self.store.snapshot(key.name)
        if not handlers:
            logger.debug("no filter handlers registered for %s", key.name)
            return initial_value

        value = initial_value
        for handler in handlers:
            result = await invoke_handler(handler, self.timeout, context, value)
            if not isinstance(result, expected):
                raise TypeMismatch(key.name, expected, type(result), owner=handler.owner)
            value = result
        return value
