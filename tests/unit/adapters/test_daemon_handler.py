"""Unit tests for control command dispatch."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from tests.conftest import FakeCompositor, make_entry
from zlaunch.adapters.compositor.bridge import CompositorBridge
from zlaunch.adapters.daemon.handler import CommandHandler
from zlaunch.adapters.daemon.protocol import Request
from zlaunch.core.registry import ModuleRegistry, modules_for_mode
from zlaunch.core.session import Session
from zlaunch.core.themes import ThemeCatalog, ThemeController
from zlaunch.domain.entities import Entry, WindowInfo
from zlaunch.domain.exceptions import ConfigLoadError
from zlaunch.domain.value_objects import (
    DEFAULT_COMBINED_MODULES,
    LauncherMode,
    Module,
    RefreshPolicy,
)


class StaticSource:
    def __init__(self, module: Module, titles: list[str]) -> None:
        self.module = module
        self.policy = RefreshPolicy.STATIC
        self._titles = titles

    def build(self) -> list[Entry]:
        return [make_entry(t, module=self.module) for t in self._titles]


class FakeDaemon:
    """Just the parts of LauncherDaemon the handler touches."""

    def __init__(self, tmp_path: Path, compositor: FakeCompositor) -> None:
        self.session = Session(default_modes=[LauncherMode.COMBINED, LauncherMode.EMOJIS])
        self.registry = ModuleRegistry()
        self.registry.register(StaticSource(Module.APPLICATIONS, ["Firefox", "Files"]))
        self.registry.register(StaticSource(Module.EMOJIS, ["fire", "grinning face"]))
        self.themes = ThemeController(ThemeCatalog(user_dir=tmp_path / "themes"))
        self.bridge = CompositorBridge(lambda **kwargs: compositor, timeout=1.0)
        self.reload = Mock()

    def modules_for(self, mode: LauncherMode) -> tuple[Module, ...]:
        return modules_for_mode(mode, DEFAULT_COMBINED_MODULES)

    def health(self) -> dict:
        return {"status": "ok", "pid": 1, "version": "test"}

    def status(self) -> dict:
        return {"session": self.session.snapshot().to_dict()}


@pytest.fixture
def compositor() -> FakeCompositor:
    return FakeCompositor(windows=[WindowInfo(id="0xa1", title="Inbox", app_id="thunderbird")])


@pytest.fixture
def daemon(tmp_path: Path, compositor: FakeCompositor) -> FakeDaemon:
    daemon = FakeDaemon(tmp_path, compositor)
    yield daemon
    daemon.registry.close()
    daemon.bridge.close()


@pytest.fixture
def handler(daemon: FakeDaemon) -> CommandHandler:
    return CommandHandler(daemon)


def call(handler: CommandHandler, command: str, **args):
    return handler.handle(Request(command=command, args=args, request_id=9))


class TestDispatch:
    def test_lists_commands(self, handler: CommandHandler) -> None:
        assert {"show", "hide", "toggle", "quit", "reload", "theme"} <= set(handler.commands)

    def test_unknown_command_is_400(self, handler: CommandHandler) -> None:
        response = call(handler, "calculate")

        assert response.error_code == 400
        assert response.id == 9

    def test_health(self, handler: CommandHandler) -> None:
        assert call(handler, "health").result["status"] == "ok"

    def test_unexpected_error_is_500(self, handler: CommandHandler, daemon: FakeDaemon) -> None:
        daemon.reload.side_effect = RuntimeError("kaboom")

        response = call(handler, "reload")

        assert response.error_code == 500
        assert "kaboom" in response.error_message


class TestSessionCommands:
    def test_show_uses_default_modes(self, handler: CommandHandler) -> None:
        result = call(handler, "show").result

        assert result["visible"] is True
        assert result["mode"] == "combined"
        assert result["cycle"] == ["combined", "emojis"]

    def test_show_with_modes(self, handler: CommandHandler) -> None:
        result = call(handler, "show", modes=["emoji"]).result

        assert result["mode"] == "emojis"
        assert result["cycle"] == ["emojis"]

    def test_show_accepts_single_string(self, handler: CommandHandler) -> None:
        assert call(handler, "show", modes="apps,windows").result["cycle"] == [
            "applications",
            "windows",
        ]

    def test_unknown_mode_is_422_and_state_unchanged(self, handler: CommandHandler) -> None:
        response = call(handler, "show", modes=["calculator"])

        assert response.error_code == 422
        assert call(handler, "status").result["session"]["visible"] is False

    def test_bad_modes_type_is_400(self, handler: CommandHandler) -> None:
        assert call(handler, "show", modes=[1, 2]).error_code == 400

    def test_toggle_twice(self, handler: CommandHandler) -> None:
        assert call(handler, "toggle").result["visible"] is True
        assert call(handler, "toggle").result["visible"] is False

    def test_hide(self, handler: CommandHandler) -> None:
        call(handler, "show")
        assert call(handler, "hide").result["visible"] is False

    def test_quit_terminates_session(self, handler: CommandHandler, daemon: FakeDaemon) -> None:
        assert call(handler, "quit").result == "ok"
        assert daemon.session.terminated

    def test_input_and_cycle(self, handler: CommandHandler) -> None:
        call(handler, "show")

        assert call(handler, "input", text="fi").result["query"] == "fi"
        cycled = call(handler, "cycle", direction="next").result
        assert cycled["mode"] == "emojis"
        assert cycled["query"] == ""
        assert call(handler, "cycle", direction="prev").result["mode"] == "combined"

    def test_cycle_while_hidden_is_422(self, handler: CommandHandler) -> None:
        assert call(handler, "cycle").error_code == 422

    def test_cycle_bad_direction_is_422(self, handler: CommandHandler) -> None:
        call(handler, "show")
        assert call(handler, "cycle", direction="sideways").error_code == 422

    def test_input_requires_text(self, handler: CommandHandler) -> None:
        call(handler, "show")
        assert call(handler, "input").error_code == 400


class TestReload:
    def test_reload_ok(self, handler: CommandHandler, daemon: FakeDaemon) -> None:
        assert call(handler, "reload").result == "ok"
        daemon.reload.assert_called_once()

    def test_rejected_reload_is_422(self, handler: CommandHandler, daemon: FakeDaemon) -> None:
        daemon.reload.side_effect = ConfigLoadError("Failed to load config: bad")

        response = call(handler, "reload")

        assert response.error_code == 422
        assert "bad" in response.error_message


class TestTheme:
    def test_get_is_default_action(self, handler: CommandHandler) -> None:
        assert call(handler, "theme").result == "default"

    def test_list(self, handler: CommandHandler) -> None:
        themes = call(handler, "theme", action="list").result

        assert {"name": "default", "is_bundled": True} in themes
        assert {"name": "nord", "is_bundled": True} in themes

    def test_set_round_trip(self, handler: CommandHandler) -> None:
        assert call(handler, "theme", action="set", name="nord").result == "ok"
        assert call(handler, "theme").result == "nord"

    def test_set_unknown_is_422_and_unchanged(self, handler: CommandHandler) -> None:
        response = call(handler, "theme", action="set", name="nope")

        assert response.error_code == 422
        assert call(handler, "theme").result == "default"

    def test_set_without_name_is_400(self, handler: CommandHandler) -> None:
        assert call(handler, "theme", action="set").error_code == 400

    def test_unknown_action_is_400(self, handler: CommandHandler) -> None:
        assert call(handler, "theme", action="delete").error_code == 400


class TestQuery:
    def test_query_defaults_to_active_mode(self, handler: CommandHandler) -> None:
        call(handler, "show", modes=["apps"])

        results = call(handler, "query", text="fi").result

        assert {r["title"] for r in results} == {"Firefox", "Files"}
        assert all(r["module"] == "applications" for r in results)

    def test_query_unions_modes(self, handler: CommandHandler) -> None:
        results = call(handler, "query", text="fi", modes=["apps", "emoji"]).result

        assert [r["module"] for r in results] == ["applications", "applications", "emojis"]

    def test_query_does_not_touch_session(self, handler: CommandHandler) -> None:
        before = call(handler, "status").result["session"]
        call(handler, "query", text="fi", modes=["apps"])

        assert call(handler, "status").result["session"] == before

    def test_limit(self, handler: CommandHandler) -> None:
        results = call(handler, "query", text="", modes=["apps"], limit=1).result
        assert len(results) == 1

    @pytest.mark.parametrize("limit,code", [(0, 422), ("ten", 400), (True, 400)])
    def test_bad_limit(self, handler: CommandHandler, limit, code: int) -> None:
        assert call(handler, "query", text="x", limit=limit).error_code == code


class TestRefresh:
    def test_refresh_one_module(self, handler: CommandHandler) -> None:
        stats = call(handler, "refresh", module="apps").result

        assert len(stats) == 1
        assert stats[0]["module"] == "applications"
        assert stats[0]["generation"] == 1

    def test_refresh_all(self, handler: CommandHandler) -> None:
        stats = call(handler, "refresh").result
        assert {s["module"] for s in stats} == {"applications", "emojis"}

    def test_unknown_module_is_404(self, handler: CommandHandler) -> None:
        assert call(handler, "refresh", module="calculator").error_code == 404

    def test_unregistered_module_is_404(self, handler: CommandHandler) -> None:
        assert call(handler, "refresh", module="clipboard").error_code == 404


class TestActivate:
    def test_activates_window(self, handler: CommandHandler, compositor: FakeCompositor) -> None:
        assert call(handler, "activate", window_id="0xa1").result == "ok"
        assert compositor.activated == ["0xa1"]

    def test_unknown_window_is_404(self, handler: CommandHandler) -> None:
        assert call(handler, "activate", window_id="0xdead").error_code == 404

    def test_unreachable_compositor_is_503(
        self, handler: CommandHandler, compositor: FakeCompositor
    ) -> None:
        compositor.fail_with = ConnectionRefusedError("refused")
        assert call(handler, "activate", window_id="0xa1").error_code == 503
