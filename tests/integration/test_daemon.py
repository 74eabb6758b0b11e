"""End-to-end tests of a daemon serving real socket clients."""

import threading
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from tests.conftest import FakeCompositor
from zlaunch.adapters.daemon.client import DaemonClient, DaemonRequestError
from zlaunch.entrypoints.cli import cli


def client_for(daemon) -> DaemonClient:
    return DaemonClient(daemon.socket_path)


class TestDefaultModes:
    def test_bare_show_opens_configured_cycle(self, daemon_factory) -> None:
        daemon = daemon_factory('default_modes = ["combined", "emojis"]\n')
        client = client_for(daemon)

        snapshot = client.call("show")
        assert snapshot["mode"] == "combined"
        assert snapshot["cycle"] == ["combined", "emojis"]

        assert client.call("cycle", {"direction": "next"})["mode"] == "emojis"
        assert client.call("cycle", {"direction": "next"})["mode"] == "combined"

    def test_show_toggle_show_scenario(self, daemon_factory) -> None:
        daemon = daemon_factory('default_modes = ["combined", "emojis"]\n')
        client = client_for(daemon)

        assert client.call("show")["mode"] == "combined"
        assert client.call("toggle")["visible"] is False

        snapshot = client.call("show", {"modes": ["emojis"]})
        assert snapshot["visible"] is True
        assert snapshot["mode"] == "emojis"
        assert snapshot["cycle"] == ["emojis"]

    def test_explicit_modes_override_defaults(self, daemon_factory) -> None:
        daemon = daemon_factory('default_modes = ["combined", "emojis"]\n')

        snapshot = client_for(daemon).call("show", {"modes": ["windows"]})

        assert snapshot["cycle"] == ["windows"]


class TestCompositor:
    def test_absent_compositor_gives_empty_windows(self, daemon_factory) -> None:
        daemon = daemon_factory()
        client = client_for(daemon)

        assert client.call("query", {"text": "", "modes": ["windows"]}) == []
        assert client.call("status")["compositor"] == "none"

        # the rest of the launcher still works
        apps = client.call("query", {"text": "", "modes": ["apps"]})
        assert {r["title"] for r in apps} == {"Firefox", "Files"}

    def test_windows_listed_focused_last(self, daemon_factory, fake_windows) -> None:
        daemon = daemon_factory(compositor=FakeCompositor(windows=fake_windows))

        results = client_for(daemon).call("query", {"text": "", "modes": ["windows"]})

        assert [r["title"] for r in results][-1] == "~/src"

    def test_activate_over_socket(self, daemon_factory, fake_windows) -> None:
        compositor = FakeCompositor(windows=fake_windows)
        daemon = daemon_factory(compositor=compositor)

        client_for(daemon).call("activate", {"window_id": "0xb2"})

        assert compositor.activated == ["0xb2"]

    def test_unreachable_compositor_is_503(self, daemon_factory, fake_windows) -> None:
        compositor = FakeCompositor(
            windows=fake_windows, fail_with=ConnectionRefusedError("refused")
        )
        daemon = daemon_factory(compositor=compositor)

        with pytest.raises(DaemonRequestError) as exc_info:
            client_for(daemon).call("activate", {"window_id": "0xa1"})

        assert exc_info.value.code == 503


class TestConcurrency:
    def test_concurrent_show_hide_leaves_consistent_state(self, daemon_factory) -> None:
        daemon = daemon_factory()
        errors: list[Exception] = []

        def hammer(command: str) -> None:
            try:
                for _ in range(10):
                    client_for(daemon).call(command)
            except Exception as e:
                errors.append(e)

        threads = [
            threading.Thread(target=hammer, args=(command,))
            for command in ("show", "hide", "toggle", "show")
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        snapshot = daemon.session.snapshot()
        assert 0 < snapshot.generation <= 40
        if snapshot.visible:
            assert snapshot.cycle
        assert daemon.server.requests_served >= 40


class TestThemes:
    def test_theme_round_trip(self, daemon_factory, tmp_path: Path) -> None:
        daemon = daemon_factory('theme = "default"\n')
        client = client_for(daemon)

        assert client.call("theme", {"action": "set", "name": "catppuccin-mocha"}) == "ok"
        assert client.call("theme") == "catppuccin-mocha"
        # persisted to the config file
        assert 'theme = "catppuccin-mocha"' in (tmp_path / "config.toml").read_text()

    def test_user_theme_shadows_nothing_but_is_listed(self, daemon_factory, tmp_path: Path) -> None:
        themes_dir = tmp_path / "themes"
        themes_dir.mkdir()
        (themes_dir / "midnight.toml").write_text(
            'name = "midnight"\n[colors]\nbackground = "#000000"\n'
        )
        daemon = daemon_factory()

        themes = client_for(daemon).call("theme", {"action": "list"})

        assert {"name": "midnight", "is_bundled": False} in themes


class TestReload:
    def test_rejected_reload_keeps_serving(self, daemon_factory, tmp_path: Path) -> None:
        daemon = daemon_factory('theme = "nord"\n')
        client = client_for(daemon)
        (tmp_path / "config.toml").write_text("default_modes = \n")

        with pytest.raises(DaemonRequestError) as exc_info:
            client.call("reload")

        assert exc_info.value.code == 422
        assert client.call("theme") == "nord"
        assert client.call("health")["status"] == "ok"


class TestLifecycle:
    def test_second_foreground_daemon_exits_4(self, daemon_factory) -> None:
        daemon = daemon_factory()

        with patch("zlaunch.adapters.daemon.runtime.setup_logging"):
            result = CliRunner().invoke(cli, ["--socket", str(daemon.socket_path)], obj={})

        assert result.exit_code == 4
        assert client_for(daemon).call("health")["status"] == "ok"

    def test_quit_over_socket_stops_daemon(self, daemon_factory) -> None:
        daemon = daemon_factory()

        assert client_for(daemon).call("quit") == "ok"

        assert daemon.session.terminated
        assert not daemon.server.running
