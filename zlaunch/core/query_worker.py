"""Resolve session queries off the control threads.

Every session change that leaves the picker visible schedules a query
resolution. Resolutions run one at a time on a private worker; a result is
only delivered if no newer session generation has been submitted since, so a
retargeted show supersedes an in-flight query instead of queueing behind it.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from zlaunch.core.registry import ModuleRegistry
from zlaunch.core.session import Session
from zlaunch.domain.entities import ScoredEntry, SessionSnapshot
from zlaunch.domain.value_objects import LauncherMode, Module

logger = logging.getLogger(__name__)

ResultSink = Callable[[SessionSnapshot, list[ScoredEntry]], None]


class QueryWorker:
    """Feeds ranked results for the latest session state to a subscriber.

    Args:
        registry: Registry to query.
        modules_for: Maps a mode to the modules it shows.
        deliver: Subscriber receiving (snapshot, results).
        limit: Maximum results per delivery.
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        modules_for: Callable[[LauncherMode], Sequence[Module]],
        deliver: ResultSink,
        limit: int = 50,
    ) -> None:
        self._registry = registry
        self._modules_for = modules_for
        self._deliver = deliver
        self._limit = limit
        self._lock = threading.Lock()
        self._latest = -1
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="zlaunch-query")
        self._unsubscribe: Callable[[], None] | None = None
        self.delivered = 0
        self.superseded = 0

    def attach(self, session: Session) -> None:
        """Start resolving queries for every visible session change."""
        self._unsubscribe = session.subscribe(self._on_session_change)

    def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        if snapshot.visible:
            self.submit(snapshot)
        else:
            with self._lock:
                # a hidden session supersedes anything still resolving
                self._latest = max(self._latest, snapshot.generation)

    def submit(self, snapshot: SessionSnapshot) -> Future:
        """Schedule resolution of a snapshot's query."""
        with self._lock:
            self._latest = max(self._latest, snapshot.generation)
        return self._executor.submit(self._resolve, snapshot)

    def _is_current(self, snapshot: SessionSnapshot) -> bool:
        return snapshot.generation >= self._latest

    def _resolve(self, snapshot: SessionSnapshot) -> list[ScoredEntry] | None:
        with self._lock:
            if not self._is_current(snapshot):
                self.superseded += 1
                return None

        modules = self._modules_for(snapshot.active_mode)
        results = self._registry.query(modules, snapshot.query, limit=self._limit)

        with self._lock:
            if not self._is_current(snapshot):
                self.superseded += 1
                logger.debug(f"Dropped results for superseded generation {snapshot.generation}")
                return None
            try:
                self._deliver(snapshot, results)
            except Exception:
                logger.exception("Result subscriber failed")
            self.delivered += 1
        return results

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._executor.shutdown(wait=False, cancel_futures=True)
