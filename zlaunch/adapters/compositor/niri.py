"""Niri IPC variant.

Niri's socket path comes from $NIRI_SOCKET. Requests are single JSON values
terminated by a newline; each reply is one JSON line wrapped in
{"Ok": ...} or {"Err": "..."}.
"""

import json
import os
from pathlib import Path
from typing import Any

from zlaunch.adapters.compositor.base import (
    compositor_socket,
    display_title,
    is_launcher_window,
    read_line,
)
from zlaunch.domain.entities import WindowInfo
from zlaunch.domain.exceptions import WindowNotFound
from zlaunch.ports.compositor import Capabilities


class NiriCompositor:
    """Compositor variant speaking Niri's JSON socket protocol."""

    name = "niri"
    capabilities = Capabilities.LIMITED

    def __init__(self, socket_path: Path, timeout: float = 2.0) -> None:
        self.socket_path = socket_path
        self.timeout = timeout

    @classmethod
    def detect(cls, env: dict[str, str] | None = None, timeout: float = 2.0):
        env = os.environ if env is None else env
        path = env.get("NIRI_SOCKET")
        if not path:
            return None
        return cls(Path(path), timeout=timeout)

    def _request(self, payload: Any) -> Any:
        with compositor_socket(self.socket_path, self.timeout) as sock:
            sock.sendall((json.dumps(payload) + "\n").encode("utf-8"))
            line = read_line(sock)
        try:
            reply = json.loads(line)
        except json.JSONDecodeError as e:
            raise OSError(f"Invalid JSON from Niri: {e}") from e
        if not isinstance(reply, dict):
            raise OSError(f"Unexpected reply from Niri: {reply!r}")
        return reply

    def list_windows(self) -> list[WindowInfo]:
        reply = self._request("Windows")
        if "Ok" not in reply:
            raise OSError(f"Niri returned an error to Windows request: {reply.get('Err')}")

        windows: list[WindowInfo] = []
        for window in reply["Ok"].get("Windows", []):
            app_id = window.get("app_id") or ""
            if is_launcher_window(app_id):
                continue
            workspace_id = window.get("workspace_id")
            windows.append(
                WindowInfo(
                    id=str(window["id"]),
                    title=display_title(window.get("title") or "", app_id),
                    app_id=app_id,
                    workspace=str(workspace_id) if workspace_id is not None else None,
                    focused=bool(window.get("is_focused", False)),
                )
            )
        windows.sort(key=lambda w: w.focused)
        return windows

    def activate_window(self, window_id: str) -> None:
        if window_id not in {w.id for w in self.list_windows()}:
            raise WindowNotFound(window_id)
        try:
            numeric_id = int(window_id)
        except ValueError as e:
            raise WindowNotFound(window_id) from e
        reply = self._request({"Action": {"FocusWindow": {"id": numeric_id}}})
        if "Ok" not in reply:
            raise WindowNotFound(window_id)

    def apply_layer_rule(self, rule: str) -> None:
        raise ValueError("Niri layer rules are configured statically in niri's config")

    def close(self) -> None:
        pass
