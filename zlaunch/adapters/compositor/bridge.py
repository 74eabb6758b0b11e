"""Compositor bridge.

Isolates the rest of the daemon from compositor IPC. The bridge owns the
active variant (the handle) and runs every call on its own single-thread
executor so a wedged compositor socket can cost at most one timeout. The
timeout covers the call itself, not the time spent queued behind another
caller. Any transport failure discards the handle; the next call detects
the compositor again.
"""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any

from zlaunch.adapters.compositor.detect import detect_compositor
from zlaunch.domain.entities import ActionKind, ActionPayload, Entry
from zlaunch.domain.exceptions import CompositorUnavailable
from zlaunch.domain.value_objects import Module
from zlaunch.ports.compositor import Capabilities, Compositor

logger = logging.getLogger(__name__)

BLUR_LAYER_RULES = (
    "blur,zlaunch",
    "ignorezero,zlaunch",
    "blurpopups,zlaunch",
    "ignorealpha 0.35,zlaunch",
)


class CompositorBridge:
    """Lazy, expendable connection to the host compositor.

    Args:
        detector: Callable returning a Compositor variant; receives the
            timeout as a keyword argument.
        timeout: Upper bound in seconds for any single compositor call.
    """

    def __init__(
        self,
        detector: Callable[..., Compositor] = detect_compositor,
        timeout: float = 2.0,
    ) -> None:
        self._detector = detector
        self.timeout = timeout
        self._backend: Compositor | None = None
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="compositor")
        self._closed = False
        self._running_since: float | None = None

    def _handle(self) -> Compositor:
        with self._lock:
            if self._closed:
                raise CompositorUnavailable("Compositor bridge is closed")
            if self._backend is None:
                self._backend = self._detector(timeout=self.timeout)
            return self._backend

    def _discard(self, backend: Compositor) -> None:
        with self._lock:
            if self._backend is backend:
                self._backend = None
        try:
            backend.close()
        except OSError as e:
            logger.debug(f"Error closing compositor handle: {e}")

    def _wait_started(self, future: Future, started: threading.Event, backend: Compositor) -> None:
        """Block until the executor picks up ``future``.

        Gives up only when the call ahead of it has overrun the timeout,
        since that caller is about to discard the handle anyway.
        """
        while not started.wait(0.05):
            if future.done():
                return
            since = self._running_since
            if since is not None and time.monotonic() - since > self.timeout:
                if future.cancel():
                    raise CompositorUnavailable(f"{backend.name} is stuck on an earlier call")

    def _call(self, method: str, *args: Any) -> Any:
        backend = self._handle()
        started = threading.Event()

        def run() -> Any:
            self._running_since = time.monotonic()
            started.set()
            try:
                return getattr(backend, method)(*args)
            finally:
                self._running_since = None

        try:
            future = self._executor.submit(run)
        except RuntimeError as e:
            # executor already shut down by close()
            raise CompositorUnavailable("Compositor bridge is closed") from e

        try:
            self._wait_started(future, started, backend)
            return future.result(timeout=self.timeout)
        except TimeoutError as e:
            future.cancel()
            self._discard(backend)
            raise CompositorUnavailable(
                f"{backend.name} did not answer {method} within {self.timeout}s"
            ) from e
        except CancelledError as e:
            raise CompositorUnavailable(f"{backend.name} {method} cancelled, bridge closed") from e
        except OSError as e:
            self._discard(backend)
            raise CompositorUnavailable(f"{backend.name} {method} failed: {e}") from e

    @property
    def name(self) -> str:
        return self._handle().name

    @property
    def capabilities(self) -> Capabilities:
        return self._handle().capabilities

    def list_windows(self) -> list[Entry]:
        """List switchable windows as windows-module entries.

        Raises:
            CompositorUnavailable: If the compositor can't be reached in time.
        """
        windows = self._call("list_windows")
        return [
            Entry(
                id=f"window-{window.id}",
                title=window.title,
                module=Module.WINDOWS,
                action=ActionPayload(ActionKind.WINDOW, window.id),
                subtitle=window.app_id,
                icon=window.app_id.lower() or None,
            )
            for window in windows
        ]

    def activate_window(self, window_id: str) -> None:
        """Focus a window by its compositor id.

        Raises:
            WindowNotFound: If the window no longer exists.
            CompositorUnavailable: If the compositor can't be reached in time.
        """
        self._call("activate_window", window_id)

    def apply_layer_rule(self, rules: tuple[str, ...] | list[str] = BLUR_LAYER_RULES) -> int:
        """Send layer rules, best effort.

        Failures are logged and never raised.

        Returns:
            Number of rules the compositor accepted.
        """
        try:
            if self.capabilities is not Capabilities.FULL:
                logger.debug(f"{self.name} does not support layer rules, skipping")
                return 0
        except CompositorUnavailable as e:
            logger.warning(f"Skipping layer rules: {e}")
            return 0

        applied = 0
        for rule in rules:
            try:
                self._call("apply_layer_rule", rule)
                applied += 1
            except (CompositorUnavailable, ValueError) as e:
                logger.warning(f"Layer rule '{rule}' not applied: {e}")
        return applied

    def reset(self) -> None:
        """Drop the current handle so the next call detects the compositor again."""
        with self._lock:
            backend, self._backend = self._backend, None
        if backend is not None:
            self._discard(backend)

    def close(self) -> None:
        self.reset()
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
