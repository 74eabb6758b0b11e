"""Fallback variant used when no supported compositor is running."""

from zlaunch.domain.entities import WindowInfo
from zlaunch.domain.exceptions import WindowNotFound
from zlaunch.ports.compositor import Capabilities


class NoopCompositor:
    """Reports no windows and ignores layer rules."""

    name = "none"
    capabilities = Capabilities.NONE

    def list_windows(self) -> list[WindowInfo]:
        return []

    def activate_window(self, window_id: str) -> None:
        raise WindowNotFound(window_id)

    def apply_layer_rule(self, rule: str) -> None:
        pass

    def close(self) -> None:
        pass
