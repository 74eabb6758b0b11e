"""Tests for TomlConfigProvider."""

import logging
from pathlib import Path

import pytest

from zlaunch.adapters.config.toml_config_provider import TomlConfigProvider
from zlaunch.domain.config import ZlaunchConfig
from zlaunch.domain.exceptions import ConfigLoadError, StartupFatal


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    config = TomlConfigProvider().load(tmp_path / "missing.toml")
    assert config == ZlaunchConfig.default()


def test_default_path_is_user_config(isolated_xdg: Path) -> None:
    config_dir = isolated_xdg / "xdg-config" / "zlaunch"
    config_dir.mkdir(parents=True)
    (config_dir / "config.toml").write_text('theme = "nord"\n')

    assert TomlConfigProvider().load().theme == "nord"


def test_file_values_overlay_defaults(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        'theme = "nord"\n'
        'default_modes = ["combined", "emojis"]\n'
        "sticky_query = true\n"
    )

    config = TomlConfigProvider().load(path)

    assert config.theme == "nord"
    assert config.default_modes == ("combined", "emojis")
    assert config.sticky_query is True
    assert config.window_width == 600.0


@pytest.mark.parametrize(
    "content",
    [
        "theme = \n",
        "clipboard_capacity = 0\n",
        'sticky_query = "yes"\n',
    ],
)
def test_invalid_file_raises_config_load_error(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.toml"
    path.write_text(content)

    with pytest.raises(ConfigLoadError) as exc_info:
        TomlConfigProvider().load(path)

    error = exc_info.value
    assert isinstance(error, StartupFatal)
    assert error.exit_code == 5
    assert str(path) in error.message
    assert error.hint is not None


def test_warnings_are_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    path = tmp_path / "config.toml"
    path.write_text('theme = "missing"\nwindow_width = 100\n')

    with caplog.at_level(logging.WARNING):
        config = TomlConfigProvider(known_themes=lambda: {"default"}).load(path)

    assert config.theme == "missing"
    messages = [r.getMessage() for r in caplog.records]
    assert any("theme 'missing' not found" in m for m in messages)
    assert any("window_width" in m for m in messages)
