"""Per-user directories, resolved through platformdirs."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

APP_NAME = "hookpress"


@dataclass(frozen=True)
class UserDirs:
    """Config and data roots for the current user.

    The overrides pin a directory explicitly, which keeps tests and sandboxed
    hosts out of the real home directory.
    """

    app_name: str = APP_NAME
    config_dir_override: Path | None = None
    data_dir_override: Path | None = None

    def config_dir(self) -> Path:
        if self.config_dir_override is not None:
            return Path(self.config_dir_override)
        return Path(user_config_dir(self.app_name, appauthor=False))

    def data_dir(self) -> Path:
        if self.data_dir_override is not None:
            return Path(self.data_dir_override)
        return Path(user_data_dir(self.app_name, appauthor=False))

    def components_dir(self) -> Path:
        """Components installed for every workspace of this user."""

        return self.data_dir() / "components"
