"""Greeting filter plus a publish counter."""

from __future__ import annotations

from hookpress_core.hooks import catalog
from hookpress_core.lifecycle import Component, ComponentInfo

DEFAULT_GREETING = "Hello, World!"


class HelloWorld(Component):
    @property
    def info(self) -> ComponentInfo:
        return ComponentInfo(id="hello_world", name="Hello World", version="1.0.0")

    async def activate(self, ctx) -> None:
        greeting = ctx.settings.get("greeting") or DEFAULT_GREETING
        ctx.settings.set("greeting", greeting)

        async def append_greeting(hook_ctx, content: str) -> str:
            return f'{content}<div class="hello-greeting">{greeting}</div>'

        def count_publish(hook_ctx, post_id: int) -> None:
            published = ctx.settings.get("published", [])
            ctx.settings.set("published", [*published, post_id])

        ctx.hooks.add_filter(catalog.THE_CONTENT, append_greeting, priority=5)
        ctx.hooks.add_action(catalog.CONTENT_PUBLISHED, count_publish)

    async def upgrade(self, ctx) -> None:
        ctx.settings.set("upgraded_from", ctx.from_version)
