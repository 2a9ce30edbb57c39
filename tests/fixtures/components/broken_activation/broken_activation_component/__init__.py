"""Fixture component whose activation fails after registering a filter."""

from __future__ import annotations

from hookpress_core.lifecycle import Component, ComponentInfo


class BrokenActivation(Component):
    @property
    def info(self) -> ComponentInfo:
        return ComponentInfo(id="broken_activation", name="Broken Activation", version="0.1.0")

    async def activate(self, ctx) -> None:
        ctx.hooks.add_filter("core/the-title", lambda hook_ctx, title: title.upper())
        raise RuntimeError("database unavailable")
