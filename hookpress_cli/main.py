"""Inspect and drive component lifecycle inside a hookpress workspace."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from hookpress_core.app import HookpressApp
from hookpress_core.config import ConfigError
from hookpress_core.hooks import HookError
from hookpress_core.lifecycle import ComponentRecord, LifecycleError
from hookpress_core.paths import UserDirs

CLI_VERSION = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hookpress",
        description="Manage hookpress components and inspect registered hooks.",
    )
    parser.add_argument("--version", action="version", version=f"hookpress v{CLI_VERSION}")
    parser.add_argument("--workspace", help="workspace directory (overrides discovery)")
    parser.add_argument("--log-level", dest="log_level", help="logging level, e.g. INFO")
    parser.add_argument(
        "--handler-timeout",
        dest="handler_timeout",
        help="seconds before an async handler or lifecycle hook is abandoned",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    status_cmd = subparsers.add_parser("status", help="show workspace and component summary")
    status_cmd.set_defaults(func=_handle_status)

    components = subparsers.add_parser("components", help="manage component lifecycle")
    comp_sub = components.add_subparsers(dest="components_cmd", required=True)

    comp_list = comp_sub.add_parser("list", help="list discovered components")
    comp_list.add_argument("--format", choices=["text", "json"], default="text")
    comp_list.set_defaults(func=_handle_list)

    for name, help_text in (
        ("install", "load an uninstalled component (discovered -> inactive)"),
        ("activate", "activate an inactive component"),
        ("deactivate", "deactivate an active component"),
        ("uninstall", "uninstall an inactive component and purge its settings"),
        ("reset", "clear the error state of a component"),
    ):
        cmd = comp_sub.add_parser(name, help=help_text)
        cmd.add_argument("component_id", help="component id")
        cmd.set_defaults(func=_handle_transition, action=name)

    upgrade = comp_sub.add_parser("upgrade", help="run the upgrade hook for a new version")
    upgrade.add_argument("component_id", help="component id")
    upgrade.add_argument("--to", dest="to_version", required=True, help="target version")
    upgrade.set_defaults(func=_handle_transition, action="upgrade")

    hooks = subparsers.add_parser("hooks", help="inspect registered hooks")
    hooks_sub = hooks.add_subparsers(dest="hooks_cmd", required=True)
    hooks_list = hooks_sub.add_parser("list", help="list hook names and their handlers")
    hooks_list.add_argument("name", nargs="?", help="only show this hook name")
    hooks_list.add_argument("--format", choices=["text", "json"], default="text")
    hooks_list.set_defaults(func=_handle_hooks_list)

    return parser


def main(
    argv: Sequence[str] | None = None,
    *,
    start_dir: Path | str | None = None,
    user_dirs: UserDirs | None = None,
) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    overrides = {
        key: value
        for key, value in (
            ("workspace", args.workspace),
            ("log_level", args.log_level),
            ("handler_timeout", args.handler_timeout),
        )
        if value
    }
    try:
        app = HookpressApp(
            start_dir=start_dir,
            user_dirs=user_dirs,
            cli_overrides=overrides,
        )
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    logging.basicConfig(level=getattr(logging, app.config.log_level, logging.WARNING))

    try:
        return asyncio.run(_run(app, args))
    except (LifecycleError, HookError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


async def _run(app: HookpressApp, args: argparse.Namespace) -> int:
    await app.bootstrap()
    try:
        return await args.func(app, args)
    finally:
        await app.shutdown()


async def _handle_status(app: HookpressApp, args: argparse.Namespace) -> int:
    status = app.status()
    print(f"workspace: {status.workspace_root}")
    print(f"components: {len(status.components)}")
    for component_id, state in status.components:
        print(f"  {component_id:<30} {state}")
    print(f"hooks with handlers: {len(status.hooks)}")
    return 0


async def _handle_list(app: HookpressApp, args: argparse.Namespace) -> int:
    records = app.lifecycle.records()
    if args.format == "json":
        print(json.dumps([_record_payload(record) for record in records], indent=2))
        return 0
    if not records:
        print("No components discovered.")
        return 0
    for record in records:
        line = f"{record.id:<30} {record.state.value:<12} {record.version or '-'}"
        if record.error:
            line += f"  ({record.error})"
        print(line)
    return 0


async def _handle_transition(app: HookpressApp, args: argparse.Namespace) -> int:
    lifecycle = app.lifecycle
    component_id = args.component_id
    if args.action == "install":
        record = lifecycle.load(component_id)
    elif args.action == "activate":
        record = await lifecycle.activate(component_id)
    elif args.action == "deactivate":
        record = await lifecycle.deactivate(component_id)
    elif args.action == "uninstall":
        record = await lifecycle.uninstall(component_id)
    elif args.action == "reset":
        record = await lifecycle.reset(component_id)
    else:
        record = await lifecycle.upgrade(component_id, args.to_version)
    print(f"{record.id}: {record.state.value} ({record.version or '-'})")
    return 0


async def _handle_hooks_list(app: HookpressApp, args: argparse.Namespace) -> int:
    names = [args.name] if args.name else list(app.registry.event_names())
    listing: dict[str, list[dict[str, Any]]] = {
        name: [
            {
                "owner": handler.owner,
                "priority": handler.priority,
                "callback": _callback_name(handler.callback),
            }
            for handler in app.registry.handlers(name)
        ]
        for name in names
    }
    if args.format == "json":
        print(json.dumps(listing, indent=2))
        return 0
    if not any(listing.values()):
        print("No hook handlers registered.")
        return 0
    for name, handlers in listing.items():
        key = app.registry.key_for(name)
        kind = key.kind if key else "?"
        print(f"{name} [{kind}]")
        for entry in handlers:
            print(f"  {entry['priority']:>5}  {entry['owner']:<24} {entry['callback']}")
    return 0


def _record_payload(record: ComponentRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "state": record.state.value,
        "version": record.version,
        "error": record.error,
        "source": record.source,
        "handlers": len(record.handlers),
    }


def _callback_name(callback: Any) -> str:
    module = getattr(callback, "__module__", None) or "?"
    name = getattr(callback, "__qualname__", None) or type(callback).__name__
    return f"{module}.{name}"
