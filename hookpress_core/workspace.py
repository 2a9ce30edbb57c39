"""Locate the .hookpress workspace and resolve settings across config layers."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

import tomllib

from .paths import UserDirs

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE_NAME = ".hookpress"
CONFIG_FILE_NAME = "config.toml"
ENV_PREFIX = "HOOKPRESS_"
WORKSPACE_KEY = "workspace"


def read_toml_settings(path: Path) -> dict[str, str]:
    """Top-level scalar keys of a TOML file as strings.

    Tables and arrays are skipped. A missing or unparsable file yields ``{}``.
    """

    try:
        document = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        logger.warning("ignoring config file %s: %s", path, exc)
        return {}
    return {
        name: str(value)
        for name, value in document.items()
        if not isinstance(value, (dict, list))
    }


def env_settings(env: Mapping[str, str]) -> dict[str, str]:
    """``HOOKPRESS_HANDLER_TIMEOUT=5`` becomes ``{"handler_timeout": "5"}``."""

    return {
        name[len(ENV_PREFIX):].lower(): value
        for name, value in env.items()
        if name.startswith(ENV_PREFIX) and len(name) > len(ENV_PREFIX)
    }


@dataclass(frozen=True)
class WorkspaceLayout:
    """Paths inside one workspace root."""

    root: Path
    config_filename: str = CONFIG_FILE_NAME

    @classmethod
    def from_root(cls, root: Path, config_filename: str = CONFIG_FILE_NAME) -> "WorkspaceLayout":
        return cls(root=Path(root).resolve(), config_filename=config_filename)

    @property
    def components_dir(self) -> Path:
        return self.root / "components"

    @property
    def state_dir(self) -> Path:
        return self.root / "state"

    @property
    def logs_dir(self) -> Path:
        return self.root / "logs"

    @property
    def config_file(self) -> Path:
        return self.root / self.config_filename

    def ensure(self) -> "WorkspaceLayout":
        for directory in (self.components_dir, self.state_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)
        if not self.config_file.exists():
            self.config_file.write_text("", encoding="utf-8")
        return self


@dataclass
class WorkspaceResolver:
    """Find the workspace and look settings up layer by layer.

    Precedence, highest first: CLI overrides, ``HOOKPRESS_*`` environment
    variables, the workspace ``config.toml``, the user ``config.toml`` and
    finally ``defaults``. The workspace root itself may be pinned with the
    ``workspace`` CLI override or ``HOOKPRESS_WORKSPACE``.
    """

    workspace_name: str = DEFAULT_WORKSPACE_NAME
    config_filename: str = CONFIG_FILE_NAME
    user_dirs: UserDirs = field(default_factory=UserDirs)
    cli_overrides: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=lambda: os.environ)
    defaults: Mapping[str, str] = field(default_factory=dict)

    # ---------- Workspace ----------

    def pinned_root(self) -> Path | None:
        raw = self.cli_overrides.get(WORKSPACE_KEY) or env_settings(self.env).get(WORKSPACE_KEY)
        return Path(raw).expanduser().resolve() if raw else None

    def find_workspace(self, start_dir: Path | None = None) -> Path | None:
        """Return the pinned root if it exists, else the nearest workspace upwards."""

        pinned = self.pinned_root()
        if pinned is not None:
            return pinned if pinned.is_dir() else None
        origin = _origin(start_dir)
        for directory in (origin, *origin.parents):
            if (directory / self.workspace_name).is_dir():
                return directory / self.workspace_name
        return None

    def ensure_workspace(self, start_dir: Path | None = None) -> Path:
        """Like :meth:`find_workspace`, creating the workspace when there is none."""

        root = self.pinned_root() or self.find_workspace(start_dir)
        if root is None:
            root = _origin(start_dir) / self.workspace_name
        return WorkspaceLayout.from_root(root, self.config_filename).ensure().root

    # ---------- Settings ----------

    def layers(self, start_dir: Path | None = None) -> list[tuple[str, Mapping[str, str]]]:
        workspace = self.find_workspace(start_dir)
        workspace_values = (
            read_toml_settings(workspace / self.config_filename) if workspace else {}
        )
        return [
            ("cli", self.cli_overrides),
            ("env", env_settings(self.env)),
            ("workspace", workspace_values),
            ("user", read_toml_settings(self.user_dirs.config_dir() / self.config_filename)),
            ("defaults", self.defaults),
        ]

    def resolve_setting(self, key: str, start_dir: Path | None = None) -> str | None:
        for source, values in self.layers(start_dir):
            if value := values.get(key):
                logger.debug("setting %s taken from %s", key, source)
                return value
        return None


def _origin(start_dir: Path | None) -> Path:
    return (Path(start_dir) if start_dir else Path.cwd()).resolve()
