"""Tests for typed configuration parsing."""

from pathlib import Path

import pytest

from hookpress_core.config import ConfigError, HookpressConfig
from hookpress_core.paths import UserDirs
from hookpress_core.workspace import CONFIG_FILE_NAME, WorkspaceResolver


def test_defaults_apply_when_nothing_is_configured() -> None:
    config = HookpressConfig.from_mapping({})

    assert config.handler_timeout == 30.0
    assert config.log_level == "WARNING"
    assert config.components_dir == "components"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("12", 12.0), ("0.5", 0.5), ("none", None), ("OFF", None), ("0", None)],
)
def test_handler_timeout_parsing(raw: str, expected: float | None) -> None:
    assert HookpressConfig.from_mapping({"handler_timeout": raw}).handler_timeout == expected


@pytest.mark.parametrize("raw", ["soon", "-1"])
def test_invalid_handler_timeout_is_rejected(raw: str) -> None:
    with pytest.raises(ConfigError):
        HookpressConfig.from_mapping({"handler_timeout": raw})


def test_log_level_is_normalized_and_validated() -> None:
    assert HookpressConfig.from_mapping({"log_level": "debug"}).log_level == "DEBUG"
    with pytest.raises(ConfigError):
        HookpressConfig.from_mapping({"log_level": "chatty"})


def test_resolve_reads_every_layer(tmp_path: Path) -> None:
    user_config_dir = tmp_path / "user-config"
    user_config_dir.mkdir()
    (user_config_dir / CONFIG_FILE_NAME).write_text('log_level = "info"\n')
    workspace = tmp_path / ".hookpress"
    workspace.mkdir()
    (workspace / CONFIG_FILE_NAME).write_text('components_dir = "extensions"\n')

    resolver = WorkspaceResolver(
        user_dirs=UserDirs(config_dir_override=user_config_dir),
        cli_overrides={"handler_timeout": "3"},
        env={},
    )
    config = HookpressConfig.resolve(resolver, tmp_path)

    assert config.handler_timeout == 3.0
    assert config.log_level == "INFO"
    assert config.components_path(workspace) == workspace / "extensions"


def test_absolute_components_dir_is_kept(tmp_path: Path) -> None:
    config = HookpressConfig(components_dir=str(tmp_path / "shared"))

    assert config.components_path(tmp_path / ".hookpress") == tmp_path / "shared"
