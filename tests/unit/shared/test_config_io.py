"""Tests for configuration I/O utilities."""

from pathlib import Path

import pytest
import tomllib

from zlaunch.domain.config import SearchProviderConfig, ZlaunchConfig
from zlaunch.shared.config_io import (
    config_to_data,
    get_config_dir,
    get_global_config_path,
    get_log_path,
    get_pid_path,
    get_socket_path,
    get_themes_dir,
    load_config_data,
    save_config,
    update_config_value,
)


class TestPaths:
    def test_config_paths_follow_xdg_config_home(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert get_config_dir() == tmp_path / "zlaunch"
        assert get_global_config_path() == tmp_path / "zlaunch" / "config.toml"
        assert get_themes_dir() == tmp_path / "zlaunch" / "themes"

    def test_config_dir_defaults_to_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME")
        assert get_config_dir() == Path.home() / ".config" / "zlaunch"

    def test_runtime_paths_follow_xdg_runtime_dir(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path))

        assert get_socket_path() == tmp_path / "zlaunch.sock"
        assert get_pid_path() == tmp_path / "zlaunch.pid"

    def test_runtime_dir_falls_back_to_tmp(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_RUNTIME_DIR")
        assert get_socket_path() == Path("/tmp/zlaunch.sock")

    def test_log_path_follows_xdg_state_home(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path))
        assert get_log_path() == tmp_path / "zlaunch" / "daemon.log"


class TestLoadConfigData:
    def test_loads_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('theme = "nord"\n[[search_providers]]\nname = "G"\n')

        assert load_config_data(path) == {"theme": "nord", "search_providers": [{"name": "G"}]}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config_data(tmp_path / "missing.toml")

    def test_malformed_file_is_value_error(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text("theme = \n")

        with pytest.raises(ValueError, match="Invalid TOML"):
            load_config_data(path)


class TestUpdateConfigValue:
    def test_updates_key_and_keeps_others(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('theme = "default"\nsticky_query = true\n')

        assert update_config_value(path, "theme", "nord") is True
        assert load_config_data(path) == {"theme": "nord", "sticky_query": True}

    def test_missing_file_is_not_created(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"

        assert update_config_value(path, "theme", "nord") is False
        assert not path.exists()


class TestSaveConfig:
    def test_round_trips_through_from_partial(self, tmp_path: Path) -> None:
        config = ZlaunchConfig(
            theme="nord",
            default_modes=("combined", "emojis"),
            combined_modules=("apps", "windows"),
            search_providers=(
                SearchProviderConfig(name="Crates", trigger="!c", url="https://c.io/?q={query}"),
            ),
        )
        path = tmp_path / "nested" / "config.toml"

        save_config(config, path)
        loaded = ZlaunchConfig.from_partial(ZlaunchConfig.default(), load_config_data(path))

        assert loaded == config

    def test_unset_optional_lists_are_omitted(self) -> None:
        data = config_to_data(ZlaunchConfig.default())

        assert "combined_modules" not in data
        assert "disabled_modules" not in data

    def test_written_file_is_valid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.toml"
        save_config(ZlaunchConfig.default(), path)

        with path.open("rb") as f:
            assert tomllib.load(f)["clipboard_capacity"] == 100
