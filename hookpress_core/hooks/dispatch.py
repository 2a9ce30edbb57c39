"""Sequential, fail-fast dispatch of action handlers."""

from __future__ import annotations

import logging
from typing import Any

from .context import HookContext
from .errors import TypeMismatch
from .invoke import invoke_handler
from .keys import HookKey
from .store import HandlerStore

logger = logging.getLogger(__name__)


class ActionDispatcher:
    """Run every action handler for an event in priority order."""

    def __init__(self, store: HandlerStore, *, timeout: float | None = None) -> None:
        self.store = store
        self.timeout = timeout

    async def dispatch(
        self,
        key: HookKey[Any],
        context: HookContext,
        payload: Any = None,
    ) -> int:
        """Invoke each handler with the same context and payload.

        Returns the number of handlers that ran. The first failure is raised
        and the remaining handlers are skipped; earlier side effects stay.
        """

        if key.typed and not key.accepts(payload):
            raise TypeMismatch(key.name, key.value_type, type(payload))

        handlers = self.store.snapshot(key.name)
        if not handlers:
            logger.debug("no action handlers registered for %s", key.name)
            return 0

        for handler in handlers:
            await invoke_handler(handler, self.timeout, context, payload)
        return len(handlers)
