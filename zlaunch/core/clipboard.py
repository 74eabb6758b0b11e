"""Bounded in-memory clipboard history.

The history is a ring: capacity is fixed when the daemon starts and the
oldest item is evicted on overflow. Nothing is written to disk.
"""

import threading
import time
from collections import deque
from collections.abc import Callable

from zlaunch.domain.entities import ClipboardItem


class ClipboardHistory:
    """Thread-safe ring buffer of clipboard snapshots, newest first."""

    def __init__(self, capacity: int, clock: Callable[[], float] = time.time) -> None:
        """Create an empty history.

        Args:
            capacity: Maximum number of items kept.
            clock: Time source for item timestamps.

        Raises:
            ValueError: If capacity is not positive.
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._clock = clock
        self._items: deque[ClipboardItem] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._next_seq = 1

    @property
    def capacity(self) -> int:
        return self._capacity

    def add(self, content: str, mime: str = "text/plain", data: bytes | None = None) -> ClipboardItem | None:
        """Record a new clipboard snapshot.

        A snapshot identical to the newest item is not recorded again.

        Returns:
            The stored item, or None if it duplicated the newest item.
        """
        with self._lock:
            if self._items:
                newest = self._items[0]
                if newest.mime == mime and newest.content == content and newest.data == data:
                    return None
            item = ClipboardItem(
                seq=self._next_seq,
                content=content,
                mime=mime,
                timestamp=self._clock(),
                data=data,
            )
            self._next_seq += 1
            # appendleft on a full deque drops the rightmost (oldest) item
            self._items.appendleft(item)
            return item

    def snapshot(self) -> tuple[ClipboardItem, ...]:
        """Items newest first."""
        with self._lock:
            return tuple(self._items)

    def get(self, seq: int) -> ClipboardItem | None:
        with self._lock:
            for item in self._items:
                if item.seq == seq:
                    return item
        return None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
