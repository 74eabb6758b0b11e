"""Session state machine.

The session is the daemon's single source of truth for what the picker
shows: visibility, active mode, the mode cycle, the query and the selection
cursor. Every transition runs under one lock and bumps the generation;
listeners are notified with an immutable snapshot after the lock is released.
"""

import logging
import threading
from collections.abc import Callable, Sequence

from zlaunch.domain.entities import SessionSnapshot
from zlaunch.domain.exceptions import InvalidStateError, ValidationError
from zlaunch.domain.value_objects import LauncherMode

logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionSnapshot], None]


def normalize_cycle(modes: Sequence[LauncherMode] | None) -> tuple[LauncherMode, ...]:
    """Deduplicate a mode list; an empty list becomes (combined,)."""
    cycle: list[LauncherMode] = []
    for mode in modes or ():
        if mode not in cycle:
            cycle.append(mode)
    return tuple(cycle) or (LauncherMode.COMBINED,)


class Session:
    """Visibility, mode and query state for the picker.

    Args:
        default_modes: Cycle used by a show without explicit modes.
        sticky_query: Keep the query across hide/show.
        on_quit: Called once, outside the lock, when quit() is applied.
    """

    def __init__(
        self,
        default_modes: Sequence[LauncherMode] | None = None,
        sticky_query: bool = False,
        on_quit: Callable[[], None] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._listeners: list[SessionListener] = []
        self._default_modes = normalize_cycle(default_modes)
        self._sticky_query = sticky_query
        self._on_quit = on_quit

        self._visible = False
        self._cycle = self._default_modes
        self._active = 0
        self._query = ""
        self._selection = 0
        self._generation = 0
        self._terminated = False

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot_locked()

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def terminated(self) -> bool:
        with self._lock:
            return self._terminated

    def _snapshot_locked(self) -> SessionSnapshot:
        return SessionSnapshot(
            visible=self._visible,
            active_mode=self._cycle[self._active],
            cycle=self._cycle,
            query=self._query,
            selection=self._selection,
            generation=self._generation,
        )

    def _commit_locked(self) -> SessionSnapshot:
        self._generation += 1
        return self._snapshot_locked()

    def _notify(self, snapshot: SessionSnapshot) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Session listener failed")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(
        self, default_modes: Sequence[LauncherMode] | None, sticky_query: bool
    ) -> None:
        """Apply reloaded defaults without disturbing a visible session."""
        with self._lock:
            self._default_modes = normalize_cycle(default_modes)
            self._sticky_query = sticky_query
            if not self._visible:
                self._cycle = self._default_modes
                self._active = 0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _show_locked(self, modes: Sequence[LauncherMode] | None) -> None:
        self._cycle = normalize_cycle(modes) if modes else self._default_modes
        self._active = 0
        self._visible = True
        if not self._sticky_query:
            self._query = ""
        self._selection = 0

    def _hide_locked(self) -> None:
        self._visible = False
        if not self._sticky_query:
            self._query = ""
        self._selection = 0

    def show(self, modes: Sequence[LauncherMode] | None = None) -> SessionSnapshot:
        """Show the picker, or retarget it if already visible.

        Args:
            modes: Mode cycle to show; None uses the configured defaults.
        """
        with self._lock:
            self._show_locked(modes)
            snapshot = self._commit_locked()
        logger.debug(f"show -> {snapshot.active_mode.value}")
        self._notify(snapshot)
        return snapshot

    def hide(self) -> SessionSnapshot:
        """Hide the picker. Hiding a hidden session changes nothing."""
        with self._lock:
            if not self._visible:
                return self._snapshot_locked()
            self._hide_locked()
            snapshot = self._commit_locked()
        logger.debug("hide")
        self._notify(snapshot)
        return snapshot

    def toggle(self, modes: Sequence[LauncherMode] | None = None) -> SessionSnapshot:
        """Flip visibility.

        A visible session is hidden unless explicit modes differ from the
        current cycle, in which case it is retargeted instead.
        """
        with self._lock:
            if not self._visible:
                self._show_locked(modes)
            elif modes and normalize_cycle(modes) != self._cycle:
                self._show_locked(modes)
            else:
                self._hide_locked()
            snapshot = self._commit_locked()
        logger.debug(f"toggle -> visible={snapshot.visible}")
        self._notify(snapshot)
        return snapshot

    def _rotate(self, step: int) -> SessionSnapshot:
        with self._lock:
            if not self._visible:
                raise InvalidStateError(
                    "Cannot change mode while the launcher is hidden",
                    hint="Run 'zlaunch show' first",
                )
            if len(self._cycle) == 1:
                return self._snapshot_locked()
            self._active = (self._active + step) % len(self._cycle)
            self._query = ""
            self._selection = 0
            snapshot = self._commit_locked()
        self._notify(snapshot)
        return snapshot

    def next_mode(self) -> SessionSnapshot:
        return self._rotate(1)

    def prev_mode(self) -> SessionSnapshot:
        return self._rotate(-1)

    def set_query(self, text: str) -> SessionSnapshot:
        """Replace the query text and reset the selection.

        Raises:
            InvalidStateError: If the session is hidden.
        """
        with self._lock:
            if not self._visible:
                raise InvalidStateError("Cannot set the query while the launcher is hidden")
            self._query = text
            self._selection = 0
            snapshot = self._commit_locked()
        self._notify(snapshot)
        return snapshot

    def select(self, index: int, count: int) -> SessionSnapshot:
        """Move the selection cursor.

        Args:
            index: New cursor position.
            count: Number of results currently shown.

        Raises:
            InvalidStateError: If the session is hidden.
            ValidationError: If index is outside [0, count).
        """
        with self._lock:
            if not self._visible:
                raise InvalidStateError("Cannot select while the launcher is hidden")
            if not 0 <= index < count:
                raise ValidationError(
                    f"Selection index {index} out of range (0-{max(count - 1, 0)})"
                )
            self._selection = index
            snapshot = self._commit_locked()
        self._notify(snapshot)
        return snapshot

    def quit(self) -> SessionSnapshot:
        """Terminate the session and trigger daemon shutdown."""
        with self._lock:
            if self._terminated:
                return self._snapshot_locked()
            self._terminated = True
            self._hide_locked()
            snapshot = self._commit_locked()
        logger.info("Session terminated")
        self._notify(snapshot)
        if self._on_quit is not None:
            self._on_quit()
        return snapshot
