"""Tests for the window, action and emoji sources."""

from unittest.mock import Mock

from tests.conftest import FakeCompositor
from zlaunch.adapters.compositor.bridge import CompositorBridge
from zlaunch.adapters.sources.actions import BUILTIN_ACTIONS, ActionSource
from zlaunch.adapters.sources.emoji import EMOJI_TABLE, EmojiSource
from zlaunch.adapters.sources.windows import WindowSource
from zlaunch.domain.entities import ActionKind
from zlaunch.domain.exceptions import CompositorUnavailable
from zlaunch.domain.value_objects import Module, RefreshPolicy


class TestWindowSource:
    def test_rebuilt_on_query(self) -> None:
        assert WindowSource.policy is RefreshPolicy.ON_QUERY
        assert WindowSource.module is Module.WINDOWS

    def test_lists_windows(self, fake_windows) -> None:
        bridge = CompositorBridge(lambda **kwargs: FakeCompositor(windows=fake_windows))

        entries = WindowSource(bridge).build()

        assert [e.action.value for e in entries] == ["0xa1", "0xb2", "0xc3"]
        bridge.close()

    def test_unreachable_compositor_gives_empty_list(self) -> None:
        bridge = Mock()
        bridge.list_windows.side_effect = CompositorUnavailable("no socket")

        assert WindowSource(bridge).build() == []


class TestActionSource:
    def test_builtin_actions(self) -> None:
        entries = ActionSource().build()

        assert len(entries) == len(BUILTIN_ACTIONS)
        assert {e.title for e in entries} >= {"Shutdown", "Reboot", "Lock Screen"}
        assert all(e.module is Module.ACTIONS for e in entries)
        assert all(e.action.kind is ActionKind.COMMAND for e in entries)

    def test_ids_are_unique(self) -> None:
        ids = [e.id for e in ActionSource().build()]
        assert len(ids) == len(set(ids))


class TestEmojiSource:
    def test_entries(self) -> None:
        entries = EmojiSource().build()

        assert len(entries) == len(EMOJI_TABLE)
        fire = next(e for e in entries if e.id == "emoji-fire")
        assert fire.title == "🔥 fire"
        assert fire.action.kind is ActionKind.EMOJI
        assert fire.action.value == "🔥"
        assert fire.subtitle == "hot, lit"

    def test_ids_are_unique(self) -> None:
        ids = [e.id for e in EmojiSource().build()]
        assert len(ids) == len(set(ids))
