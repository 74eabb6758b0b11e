"""Module registry: one index per searchable module.

Each module's index is built by its IndexSource entirely outside the
registry lock, then swapped in with a single assignment. Readers holding
the previous Index keep a complete, consistent snapshot.
"""

import logging
import threading
import time
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from zlaunch.core.ranking import rank_entries
from zlaunch.core.search import (
    Fallback,
    SearchProviderSource,
    Triggered,
    detect_search,
    provider_entry,
)
from zlaunch.domain.config import SearchProviderConfig
from zlaunch.domain.entities import Index, ScoredEntry
from zlaunch.domain.exceptions import IndexRefreshFailure
from zlaunch.domain.value_objects import LauncherMode, Module, RefreshPolicy
from zlaunch.ports.index_source import IndexSource

logger = logging.getLogger(__name__)


def modules_for_mode(
    mode: LauncherMode, combined_modules: Sequence[Module]
) -> tuple[Module, ...]:
    """Modules a mode shows, in section order."""
    module = mode.module
    if module is None:
        return tuple(combined_modules)
    return (module,)


class ModuleRegistry:
    """Holds the current index of every registered module.

    Args:
        max_workers: Threads used for background refreshes.
        clock: Wall-clock source for refreshed_at.
    """

    def __init__(
        self,
        max_workers: int = 2,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._sources: dict[Module, IndexSource] = {}
        self._indexes: dict[Module, Index] = {}
        self._pending: dict[Module, Future] = {}
        self._providers: tuple[SearchProviderConfig, ...] = ()
        self._lock = threading.Lock()
        self._clock = clock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="zlaunch-refresh"
        )

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, source: IndexSource) -> None:
        """Register (or replace) the source for a module.

        A replaced source keeps serving its old entries, marked stale, until
        the next refresh.
        """
        with self._lock:
            self._sources[source.module] = source
            current = self._indexes.get(source.module)
            self._indexes[source.module] = (
                current.mark_stale() if current else Index.empty(source.module)
            )
        logger.debug(f"Registered {source.module.value} source ({source.policy.value})")

    def set_search_providers(self, providers: Sequence[SearchProviderConfig]) -> None:
        """Install the configured search providers and rebuild their index."""
        with self._lock:
            self._providers = tuple(providers)
        self.register(SearchProviderSource(providers))
        self.refresh(Module.SEARCH)

    @property
    def modules(self) -> tuple[Module, ...]:
        with self._lock:
            return tuple(self._sources)

    @property
    def search_providers(self) -> tuple[SearchProviderConfig, ...]:
        with self._lock:
            return self._providers

    def snapshot(self, module: Module) -> Index:
        """Current index of a module (an empty stale index if unregistered)."""
        with self._lock:
            return self._indexes.get(module) or Index.empty(module)

    def source(self, module: Module) -> IndexSource | None:
        with self._lock:
            return self._sources.get(module)

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, module: Module) -> Index:
        """Rebuild one module's index and swap it in.

        Failures are isolated: the module gets an empty index marked stale
        with the error recorded, and nothing is raised.

        Raises:
            KeyError: If no source is registered for the module.
        """
        with self._lock:
            source = self._sources.get(module)
        if source is None:
            raise KeyError(f"No source registered for module '{module.value}'")

        started = time.perf_counter()
        error: str | None = None
        try:
            entries = tuple(source.build())
        except Exception as e:
            failure = IndexRefreshFailure(module.value, str(e) or type(e).__name__)
            logger.warning(failure.message)
            entries = ()
            error = failure.reason
        cost = time.perf_counter() - started

        with self._lock:
            current = self._indexes.get(module) or Index.empty(module)
            new_index = Index(
                module=module,
                entries=entries,
                generation=current.generation + 1,
                refreshed_at=self._clock(),
                refresh_cost=cost,
                stale=error is not None,
                error=error,
            )
            self._indexes[module] = new_index

        logger.debug(
            f"Refreshed {module.value}: {len(entries)} entries in {cost * 1000:.1f}ms"
        )
        return new_index

    def refresh_all(self) -> list[Index]:
        return [self.refresh(module) for module in self.modules]

    def refresh_async(self, module: Module) -> Future:
        """Schedule a background refresh, reusing one already in flight."""
        with self._lock:
            pending = self._pending.get(module)
            if pending is not None and not pending.done():
                return pending
            future = self._executor.submit(self.refresh, module)
            self._pending[module] = future
        return future

    def invalidate(self, module: Module) -> None:
        """Mark a module's index stale so the next query rebuilds it."""
        with self._lock:
            current = self._indexes.get(module)
            if current is not None and not current.stale:
                self._indexes[module] = current.mark_stale()

    def _current_index(self, module: Module) -> Index | None:
        with self._lock:
            source = self._sources.get(module)
            index = self._indexes.get(module)
        if source is None or index is None:
            return None

        if source.policy is RefreshPolicy.ON_QUERY:
            return self.refresh(module)
        if index.generation == 0:
            # never built: block once rather than show an empty module
            return self.refresh(module)
        if index.stale and source.policy is RefreshPolicy.CACHED:
            self.refresh_async(module)
        return index

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(
        self,
        modules: Sequence[Module],
        text: str,
        limit: int | None = None,
    ) -> list[ScoredEntry]:
        """Rank every listed module's index against the query text.

        Results are grouped by module in the order given, each group sorted
        by the ranking engine. A search trigger such as "!g rust" short
        circuits to that provider when the search module is listed.

        Args:
            modules: Modules to search, in section order.
            text: Raw query text.
            limit: Maximum number of results; None for all.

        Returns:
            Ordered ScoredEntry list tagged by module.
        """
        with self._lock:
            providers = self._providers
        search_listed = Module.SEARCH in modules
        detection = detect_search(text, providers) if search_listed else None

        if isinstance(detection, Triggered):
            entry = provider_entry(detection.provider, detection.query)
            return [ScoredEntry(entry=entry, score=0.0)]

        results: list[ScoredEntry] = []
        for module in modules:
            if module is Module.SEARCH:
                continue
            index = self._current_index(module)
            if index is None:
                continue
            results.extend(rank_entries(text, index.entries))

        if search_listed:
            results = self._merge_search(modules, text, results, detection)

        if limit is not None:
            return results[:limit]
        return results

    def _merge_search(
        self,
        modules: Sequence[Module],
        text: str,
        results: list[ScoredEntry],
        detection: Triggered | Fallback | None,
    ) -> list[ScoredEntry]:
        index = self._current_index(Module.SEARCH)
        if index is None:
            return results

        if isinstance(detection, Fallback) and (not results or len(modules) == 1):
            # nothing else matched: offer every provider for the raw text
            with self._lock:
                providers = self._providers
            search = [
                ScoredEntry(entry=provider_entry(p, detection.query), score=0.0)
                for p in providers
            ]
        else:
            search = rank_entries(text, index.entries)

        # keep the search section where it sits in the module order
        position = list(modules).index(Module.SEARCH)
        before = set(modules[:position])
        head = [r for r in results if r.module in before]
        tail = [r for r in results if r.module not in before]
        return head + search + tail

    def stats(self) -> list[dict]:
        with self._lock:
            indexes = [self._indexes[m] for m in self._sources if m in self._indexes]
        return [index.stats() for index in indexes]

    def close(self) -> None:
        """Stop background refresh workers."""
        self._executor.shutdown(wait=False, cancel_futures=True)
