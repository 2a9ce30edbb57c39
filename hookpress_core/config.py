"""Typed runtime configuration resolved from the layered settings sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .workspace import WorkspaceResolver

DEFAULT_HANDLER_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_COMPONENTS_DIR = "components"

DEFAULTS: dict[str, str] = {
    "handler_timeout": str(DEFAULT_HANDLER_TIMEOUT),
    "log_level": DEFAULT_LOG_LEVEL,
    "components_dir": DEFAULT_COMPONENTS_DIR,
}


class ConfigError(ValueError):
    """Raised when a configuration value cannot be interpreted."""


@dataclass(frozen=True)
class HookpressConfig:
    handler_timeout: float | None = DEFAULT_HANDLER_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    components_dir: str = DEFAULT_COMPONENTS_DIR

    @classmethod
    def from_mapping(cls, values: Mapping[str, str | None]) -> "HookpressConfig":
        return cls(
            handler_timeout=_parse_timeout(values.get("handler_timeout")),
            log_level=_parse_log_level(values.get("log_level")),
            components_dir=values.get("components_dir") or DEFAULT_COMPONENTS_DIR,
        )

    @classmethod
    def resolve(
        cls,
        resolver: WorkspaceResolver,
        start_dir: Path | None = None,
    ) -> "HookpressConfig":
        """Build a config where each key follows the resolver's precedence."""

        return cls.from_mapping(
            {key: resolver.resolve_setting(key, start_dir) for key in DEFAULTS}
        )

    def components_path(self, workspace_root: Path) -> Path:
        path = Path(self.components_dir).expanduser()
        return path if path.is_absolute() else workspace_root / path


def _parse_timeout(raw: str | None) -> float | None:
    if raw is None or not raw.strip():
        return DEFAULT_HANDLER_TIMEOUT
    if raw.strip().lower() in ("none", "off"):
        return None
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"handler_timeout must be a number, got {raw!r}") from exc
    if value < 0:
        raise ConfigError("handler_timeout cannot be negative")
    return value or None


def _parse_log_level(raw: str | None) -> str:
    level = (raw or DEFAULT_LOG_LEVEL).strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"unknown log level {raw!r}")
    return level
