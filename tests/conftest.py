"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from zlaunch.adapters.compositor.noop import NoopCompositor
from zlaunch.adapters.daemon.runtime import LauncherDaemon
from zlaunch.domain.entities import ActionKind, ActionPayload, Entry, WindowInfo
from zlaunch.domain.exceptions import WindowNotFound
from zlaunch.domain.value_objects import Module
from zlaunch.ports.compositor import Capabilities

# ============================================================================
# Environment isolation
# ============================================================================
# Every test gets its own XDG directories so nothing touches the real user
# config, log file or control socket.


@pytest.fixture
def short_tmp() -> Iterator[Path]:
    """Short temporary directory under /tmp.

    AF_UNIX socket paths are limited to ~108 bytes, which pytest's tmp_path
    can exceed.
    """
    path = Path(tempfile.mkdtemp(prefix="zl-", dir="/tmp"))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, short_tmp: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG location at throwaway directories."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "xdg-state"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    monkeypatch.setenv("XDG_DATA_DIRS", str(tmp_path / "xdg-data-dirs"))
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(short_tmp))
    for name in ("HYPRLAND_INSTANCE_SIGNATURE", "NIRI_SOCKET", "KDE_SESSION_VERSION"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


# ============================================================================
# Sample data
# ============================================================================


def make_entry(
    title: str,
    module: Module = Module.APPLICATIONS,
    entry_id: str | None = None,
    kind: ActionKind = ActionKind.LAUNCH,
) -> Entry:
    """Build an entry with sensible defaults for tests."""
    return Entry(
        id=entry_id or f"{module.value}-{'-'.join(title.lower().split())}",
        title=title,
        module=module,
        action=ActionPayload(kind=kind, value=title.lower()),
    )


@pytest.fixture
def sample_entries() -> list[Entry]:
    """A handful of application entries in index order."""
    return [
        make_entry("Firefox"),
        make_entry("Files"),
        make_entry("Thunderbird Mail"),
        make_entry("GNU Image Manipulation Program"),
        make_entry("Visual Studio Code"),
        make_entry("Terminal"),
    ]


def write_desktop_file(directory: Path, stem: str, body: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{stem}.desktop"
    path.write_text(body)
    return path


@pytest.fixture
def apps_dir(tmp_path: Path) -> Path:
    """Application directory with two visible entries and one hidden one."""
    directory = tmp_path / "applications"
    write_desktop_file(
        directory,
        "firefox",
        "[Desktop Entry]\nType=Application\nName=Firefox\nExec=firefox %u\nIcon=firefox\n",
    )
    write_desktop_file(
        directory,
        "org.gnome.Nautilus",
        "[Desktop Entry]\nType=Application\nName=Files\nExec=nautilus --new-window %U\n",
    )
    write_desktop_file(
        directory,
        "hidden",
        "[Desktop Entry]\nType=Application\nName=Hidden Tool\nExec=hidden\nNoDisplay=true\n",
    )
    return directory


# ============================================================================
# Compositor fakes
# ============================================================================


class FakeCompositor:
    """In-memory compositor variant recording every call."""

    name = "fake"

    def __init__(
        self,
        windows: list[WindowInfo] | None = None,
        capabilities: Capabilities = Capabilities.FULL,
        fail_with: Exception | None = None,
    ) -> None:
        self.windows = list(windows or [])
        self.capabilities = capabilities
        self.fail_with = fail_with
        self.activated: list[str] = []
        self.rules: list[str] = []
        self.closed = False

    def list_windows(self) -> list[WindowInfo]:
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.windows)

    def activate_window(self, window_id: str) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        if window_id not in {w.id for w in self.windows}:
            raise WindowNotFound(window_id)
        self.activated.append(window_id)

    def apply_layer_rule(self, rule: str) -> None:
        self.rules.append(rule)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_windows() -> list[WindowInfo]:
    return [
        WindowInfo(id="0xa1", title="Inbox - Thunderbird", app_id="thunderbird"),
        WindowInfo(id="0xb2", title="zlaunch - Visual Studio Code", app_id="Code"),
        WindowInfo(id="0xc3", title="~/src", app_id="kitty", focused=True),
    ]


# ============================================================================
# In-thread daemons
# ============================================================================


@pytest.fixture
def daemon_factory(
    short_tmp: Path, tmp_path: Path, apps_dir: Path
) -> Iterator[Callable[..., LauncherDaemon]]:
    """Start LauncherDaemons serving on a background thread.

    The factory accepts optional config TOML text and a compositor variant.
    All daemons are shut down when the test ends.
    """
    running: list[tuple[LauncherDaemon, threading.Thread]] = []

    def start(
        config_text: str | None = None,
        compositor=None,
        socket_name: str | None = None,
    ) -> LauncherDaemon:
        config_path = tmp_path / "config.toml"
        if config_text is not None:
            config_path.write_text(config_text)
        variant = compositor if compositor is not None else NoopCompositor()

        daemon = LauncherDaemon(
            socket_path=short_tmp / (socket_name or f"d{len(running)}.sock"),
            config_path=config_path,
            themes_dir=tmp_path / "themes",
            detector=lambda **kwargs: variant,
            app_dirs=[apps_dir],
            start_watchers=False,
        )
        daemon.start()
        thread = threading.Thread(target=daemon.server.serve_forever, daemon=True)
        thread.start()
        running.append((daemon, thread))
        return daemon

    yield start

    for daemon, thread in running:
        daemon.request_shutdown()
        thread.join(timeout=5)
        daemon.shutdown()
