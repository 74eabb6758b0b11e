"""Hyprland IPC variant.

Hyprland listens on $XDG_RUNTIME_DIR/hypr/<signature>/.socket.sock and
answers exactly one command per connection, closing the socket after the
reply. "j/<command>" asks for JSON output.
"""

import json
import logging
import os
from pathlib import Path

from zlaunch.adapters.compositor.base import (
    compositor_socket,
    display_title,
    is_launcher_window,
    read_until_eof,
)
from zlaunch.domain.entities import WindowInfo
from zlaunch.domain.exceptions import WindowNotFound
from zlaunch.ports.compositor import Capabilities

logger = logging.getLogger(__name__)


def hyprland_socket_path(env: dict[str, str] | None = None) -> Path | None:
    """Locate the command socket for the running Hyprland instance."""
    env = os.environ if env is None else env
    signature = env.get("HYPRLAND_INSTANCE_SIGNATURE")
    if not signature:
        return None
    runtime_dir = env.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        path = Path(runtime_dir) / "hypr" / signature / ".socket.sock"
        if path.exists():
            return path
    # pre-0.40 location
    return Path("/tmp") / "hypr" / signature / ".socket.sock"


class HyprlandCompositor:
    """Compositor variant speaking Hyprland's socket protocol."""

    name = "hyprland"
    capabilities = Capabilities.FULL

    def __init__(self, socket_path: Path, timeout: float = 2.0) -> None:
        self.socket_path = socket_path
        self.timeout = timeout

    @classmethod
    def detect(cls, env: dict[str, str] | None = None, timeout: float = 2.0):
        path = hyprland_socket_path(env)
        if path is None:
            return None
        return cls(path, timeout=timeout)

    def _request(self, command: str) -> str:
        with compositor_socket(self.socket_path, self.timeout) as sock:
            sock.sendall(command.encode("utf-8"))
            return read_until_eof(sock).decode("utf-8", errors="replace")

    def list_windows(self) -> list[WindowInfo]:
        raw = self._request("j/clients")
        try:
            clients = json.loads(raw)
        except json.JSONDecodeError as e:
            raise OSError(f"Invalid JSON from Hyprland: {e}") from e

        windows: list[tuple[int, WindowInfo]] = []
        for client in clients:
            app_id = client.get("class") or ""
            if not client.get("mapped", True) or client.get("hidden", False):
                continue
            if not app_id or is_launcher_window(app_id):
                continue
            workspace = client.get("workspace") or {}
            focus_order = client.get("focusHistoryID", 0)
            windows.append(
                (
                    focus_order,
                    WindowInfo(
                        id=str(client.get("address", "")),
                        title=display_title(client.get("title") or "", app_id),
                        app_id=app_id,
                        workspace=str(workspace.get("id")) if "id" in workspace else None,
                        focused=focus_order == 0,
                    ),
                )
            )

        # most recently used first, the focused window last
        windows.sort(key=lambda pair: (pair[1].focused, pair[0]))
        return [window for _, window in windows]

    def activate_window(self, window_id: str) -> None:
        if window_id not in {w.id for w in self.list_windows()}:
            raise WindowNotFound(window_id)
        reply = self._request(f"dispatch focuswindow address:{window_id}").strip()
        if reply != "ok":
            logger.debug(f"Hyprland rejected focuswindow: {reply}")
            raise WindowNotFound(window_id)

    def apply_layer_rule(self, rule: str) -> None:
        reply = self._request(f"keyword layerrule {rule}").strip()
        if reply != "ok":
            raise ValueError(f"Hyprland rejected layer rule '{rule}': {reply}")

    def close(self) -> None:
        pass
