"""KWin variant via the WindowsRunner krunner D-Bus interface.

KWin exposes no window-list socket. Its WindowsRunner answers the krunner1
Match/Run calls on the session bus; we drive it through busctl so the daemon
does not need D-Bus bindings. Match ids carry a "0_" prefix and titles are
"<window title> - <application>".
"""

import json
import logging
import os
import shutil
import subprocess

from zlaunch.adapters.compositor.base import display_title, is_launcher_window
from zlaunch.domain.entities import WindowInfo
from zlaunch.domain.exceptions import WindowNotFound
from zlaunch.ports.compositor import Capabilities

logger = logging.getLogger(__name__)

KWIN_SERVICE = "org.kde.KWin"
RUNNER_PATH = "/WindowsRunner"
RUNNER_INTERFACE = "org.kde.krunner1"
MATCH_ID_PREFIX = "0_"


def split_runner_title(text: str) -> tuple[str, str]:
    """Split "Title - App" into (title, app). Untitled matches use the app."""
    if " - " in text:
        title, app = text.rsplit(" - ", 1)
        return title, app
    return text, text


class KWinCompositor:
    """Compositor variant for KDE Plasma's KWin."""

    name = "kwin"
    capabilities = Capabilities.LIMITED

    def __init__(self, busctl: str = "busctl", timeout: float = 2.0) -> None:
        self.busctl = busctl
        self.timeout = timeout

    @classmethod
    def detect(cls, env: dict[str, str] | None = None, timeout: float = 2.0):
        env = os.environ if env is None else env
        if not env.get("KDE_SESSION_VERSION"):
            return None
        busctl = shutil.which("busctl")
        if busctl is None:
            logger.warning("KDE session detected but busctl is not installed")
            return None
        return cls(busctl=busctl, timeout=timeout)

    def _call(self, method: str, signature: str, *args: str) -> dict:
        cmd = [
            self.busctl,
            "--user",
            "--json=short",
            "call",
            KWIN_SERVICE,
            RUNNER_PATH,
            RUNNER_INTERFACE,
            method,
            signature,
            *args,
        ]
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"KWin {method} call timed out") from e
        if result.returncode != 0:
            raise OSError(f"KWin {method} call failed: {result.stderr.strip()}")
        if not result.stdout.strip():
            return {}
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise OSError(f"Invalid busctl output for {method}: {e}") from e

    def list_windows(self) -> list[WindowInfo]:
        reply = self._call("Match", "s", "")
        data = reply.get("data") or [[]]
        matches = data[0] if data else []

        windows: list[WindowInfo] = []
        for match in matches:
            match_id, text = str(match[0]), str(match[1])
            if not match_id.startswith(MATCH_ID_PREFIX):
                continue
            title, app_id = split_runner_title(text)
            if is_launcher_window(app_id):
                continue
            windows.append(
                WindowInfo(
                    id=match_id[len(MATCH_ID_PREFIX) :],
                    title=display_title(title, app_id),
                    app_id=app_id,
                )
            )
        return windows

    def activate_window(self, window_id: str) -> None:
        if window_id not in {w.id for w in self.list_windows()}:
            raise WindowNotFound(window_id)
        self._call("Run", "ss", MATCH_ID_PREFIX + window_id, "")

    def apply_layer_rule(self, rule: str) -> None:
        raise ValueError("KWin does not accept layer rules over IPC")

    def close(self) -> None:
        pass
