"""Clipboard history module and the wl-paste watcher that feeds it."""

import logging
import subprocess
import threading
from collections.abc import Callable
from datetime import datetime

from zlaunch.core.clipboard import ClipboardHistory
from zlaunch.domain.entities import ActionKind, ActionPayload, Entry
from zlaunch.domain.value_objects import Module, RefreshPolicy

logger = logging.getLogger(__name__)

TEXT_MIMES = ("text/plain;charset=utf-8", "text/plain", "UTF8_STRING", "STRING", "TEXT")
ClipboardRead = tuple[str, bytes]
"""(mime type, raw content) as read from the clipboard."""


def pick_mime(offered: list[str]) -> str | None:
    """Choose which offered mime type to read.

    Images win, then file lists, then rich text, then plain text.
    """
    for mime in offered:
        if mime.startswith("image/"):
            return mime
    if "text/uri-list" in offered:
        return "text/uri-list"
    if "text/html" in offered:
        return "text/html"
    for mime in TEXT_MIMES:
        if mime in offered:
            return mime
    return None


class WlPasteReader:
    """Reads the current clipboard selection through wl-paste.

    Raises FileNotFoundError from __call__ when wl-paste is not installed.
    """

    def __init__(self, binary: str = "wl-paste", timeout: float = 2.0) -> None:
        self.binary = binary
        self.timeout = timeout

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            [self.binary, *args],
            capture_output=True,
            timeout=self.timeout,
            check=False,
        )

    def __call__(self) -> ClipboardRead | None:
        listed = self._run("--list-types")
        if listed.returncode != 0:
            # empty clipboard
            return None
        offered = listed.stdout.decode("utf-8", errors="replace").split()
        mime = pick_mime(offered)
        if mime is None:
            return None
        content = self._run("--no-newline", "--type", mime)
        if content.returncode != 0:
            return None
        return mime, content.stdout


def _normalize_mime(mime: str) -> str:
    if mime.startswith("image/") or mime in ("text/uri-list", "text/html"):
        return mime
    return "text/plain"


class ClipboardWatcher:
    """Background thread that polls the clipboard into a ClipboardHistory.

    Args:
        history: Ring buffer receiving new items.
        on_change: Called after a new item is recorded.
        reader: Callable returning the current clipboard content, or None.
        interval: Seconds between polls.
    """

    def __init__(
        self,
        history: ClipboardHistory,
        on_change: Callable[[], None] | None = None,
        reader: Callable[[], ClipboardRead | None] | None = None,
        interval: float = 0.5,
    ) -> None:
        self._history = history
        self._on_change = on_change
        self._reader = reader or WlPasteReader()
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll(self) -> bool:
        """Read the clipboard once. Returns True if a new item was recorded.

        Raises:
            FileNotFoundError: If the clipboard tool is missing.
        """
        read = self._reader()
        if read is None:
            return False
        mime, raw = read
        mime = _normalize_mime(mime)
        if mime.startswith("image/"):
            item = self._history.add(f"Image ({mime})", mime=mime, data=raw)
        else:
            text = raw.decode("utf-8", errors="replace")
            if not text.strip():
                return False
            item = self._history.add(text, mime=mime)
        if item is None:
            return False
        logger.debug(f"Recorded clipboard item {item.seq} ({item.kind})")
        if self._on_change is not None:
            self._on_change()
        return True

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.poll()
            except FileNotFoundError:
                logger.warning("wl-paste not found, clipboard history disabled")
                return
            except (OSError, subprocess.SubprocessError) as e:
                logger.warning(f"Clipboard poll failed: {e}")
            self._stop.wait(self._interval)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="clipboard-watcher", daemon=True)
        self._thread.start()
        logger.info("Clipboard watcher started")

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None


class ClipboardSource:
    """Index source exposing the clipboard history, newest first."""

    module = Module.CLIPBOARD
    policy = RefreshPolicy.PUSHED

    def __init__(self, history: ClipboardHistory) -> None:
        self._history = history

    @property
    def history(self) -> ClipboardHistory:
        return self._history

    def build(self) -> list[Entry]:
        entries = []
        for item in self._history.snapshot():
            copied = datetime.fromtimestamp(item.timestamp).strftime("%H:%M:%S")
            entries.append(
                Entry(
                    id=f"clip-{item.seq}",
                    title=item.preview(),
                    subtitle=f"{item.kind.replace('_', ' ')} · {copied}",
                    icon="clipboard",
                    module=Module.CLIPBOARD,
                    action=ActionPayload(kind=ActionKind.CLIPBOARD, value=str(item.seq)),
                )
            )
        return entries
