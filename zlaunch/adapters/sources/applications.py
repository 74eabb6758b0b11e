"""Installed applications from freedesktop .desktop files."""

import configparser
import logging
import os
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

from zlaunch.domain.entities import ActionKind, ActionPayload, Entry
from zlaunch.domain.value_objects import Module, RefreshPolicy

logger = logging.getLogger(__name__)

DESKTOP_SECTION = "Desktop Entry"
FIELD_CODES = ("%f", "%F", "%u", "%U", "%d", "%D", "%n", "%N", "%i", "%c", "%k")


def application_dirs(env: dict[str, str] | None = None) -> list[Path]:
    """XDG application directories in lookup order (user first)."""
    env = os.environ if env is None else env
    data_home = env.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    data_dirs = env.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    dirs = [Path(data_home) / "applications"]
    dirs.extend(Path(d) / "applications" for d in data_dirs.split(":") if d)
    return dirs


def clean_exec(exec_line: str) -> str:
    """Strip desktop-entry field codes from an Exec line."""
    for code in FIELD_CODES:
        exec_line = exec_line.replace(code, "")
    return " ".join(exec_line.split())


def desktop_file_id(path: Path, directory: Path) -> str:
    """XDG desktop id of a file found under an applications directory.

    Subdirectories become dash-separated prefixes, so
    ``applications/kde/kate.desktop`` is ``kde-kate``.
    """
    try:
        relative = path.relative_to(directory)
    except ValueError:
        return path.stem
    return "-".join(relative.with_suffix("").parts)


def parse_desktop_file(path: Path, desktop_id: str | None = None) -> Entry | None:
    """Parse one .desktop file into an applications entry.

    Args:
        path: The .desktop file.
        desktop_id: XDG desktop id; defaults to the file stem.

    Returns:
        Entry, or None if the file is unreadable, hidden, not an
        application, or lacks Name/Exec.
    """
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    parser.optionxform = str  # keys are case-sensitive
    try:
        parser.read(path, encoding="utf-8")
    except (configparser.Error, OSError, UnicodeDecodeError) as e:
        logger.debug(f"Skipping unreadable desktop file {path}: {e}")
        return None

    if not parser.has_section(DESKTOP_SECTION):
        return None
    section = parser[DESKTOP_SECTION]

    if section.get("Type", "Application") != "Application":
        return None
    if section.get("NoDisplay", "false").lower() == "true":
        return None
    if section.get("Hidden", "false").lower() == "true":
        return None

    name = section.get("Name", "").strip()
    exec_line = clean_exec(section.get("Exec", ""))
    if not name or not exec_line:
        return None

    command = exec_line
    if section.get("Terminal", "false").lower() == "true":
        terminal = os.environ.get("TERMINAL", "xterm")
        command = f"{terminal} -e {exec_line}"

    return Entry(
        id=f"app-{desktop_id or path.stem}",
        title=name,
        subtitle=section.get("Comment") or None,
        icon=section.get("Icon") or None,
        module=Module.APPLICATIONS,
        action=ActionPayload(kind=ActionKind.LAUNCH, value=command),
    )


def _walk_desktop_files(directory: Path) -> Iterator[Path]:
    try:
        children = sorted(directory.iterdir())
    except OSError:
        return
    for child in children:
        if child.is_dir():
            yield from _walk_desktop_files(child)
        elif child.suffix == ".desktop":
            yield child


class ApplicationSource:
    """Index source scanning the XDG application directories.

    Args:
        dirs: Directories to scan; defaults to application_dirs().
    """

    module = Module.APPLICATIONS
    policy = RefreshPolicy.CACHED

    def __init__(self, dirs: list[Path] | None = None) -> None:
        self.dirs = dirs if dirs is not None else application_dirs()

    def build(self) -> list[Entry]:
        entries: dict[str, Entry] = {}
        for directory in self.dirs:
            for path in _walk_desktop_files(directory):
                entry = parse_desktop_file(path, desktop_file_id(path, directory))
                if entry is not None and entry.id not in entries:
                    entries[entry.id] = entry
        result = sorted(entries.values(), key=lambda e: e.title.lower())
        logger.debug(f"Found {len(result)} application(s)")
        return result

    def fingerprint(self) -> tuple[tuple[str, int], ...]:
        """Modification times of the scanned directories and subdirectories."""
        stamps: list[tuple[str, int]] = []
        for directory in self.dirs:
            for root, _dirs, _files in os.walk(directory):
                try:
                    stamps.append((root, os.stat(root).st_mtime_ns))
                except OSError:
                    continue
        return tuple(stamps)


class DesktopWatcher:
    """Polls application directories and refreshes the index on change.

    Args:
        source: Application source whose directories are watched.
        on_change: Called when the fingerprint changes (typically
            invalidates and refreshes the applications module).
        interval: Seconds between polls.
    """

    def __init__(
        self,
        source: ApplicationSource,
        on_change: Callable[[], None],
        interval: float = 5.0,
    ) -> None:
        self._source = source
        self._on_change = on_change
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last = source.fingerprint()

    def poll(self) -> bool:
        """Check once. Returns True if a change was detected."""
        current = self._source.fingerprint()
        if current == self._last:
            return False
        self._last = current
        logger.info("Application directories changed, refreshing")
        self._on_change()
        return True

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self.poll()
            except Exception:
                logger.warning("Desktop watcher poll failed", exc_info=True)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="desktop-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
