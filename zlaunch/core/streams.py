"""Supervision of streamed text producers.

At most one stream is active. Starting a new one cancels the previous one,
and hiding the session cancels whatever is running.
"""

import logging
import threading
from collections.abc import Iterator

from zlaunch.core.session import Session
from zlaunch.domain.entities import SessionSnapshot
from zlaunch.ports.streams import TextStream

logger = logging.getLogger(__name__)


class StreamSupervisor:
    """Tracks the active TextStream and cancels it when the picker hides."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active: TextStream | None = None

    def attach(self, session: Session) -> None:
        session.subscribe(self._on_session_change)

    @property
    def active(self) -> TextStream | None:
        with self._lock:
            return self._active

    def start(self, stream: TextStream) -> Iterator[str]:
        """Make a stream active and return an iterator over its chunks.

        The iterator stops as soon as the stream is cancelled.
        """
        with self._lock:
            previous, self._active = self._active, stream
        if previous is not None and previous is not stream:
            previous.cancel()
        return self._drain(stream)

    def _drain(self, stream: TextStream) -> Iterator[str]:
        try:
            for chunk in stream:
                if stream.cancelled:
                    break
                yield chunk
        finally:
            with self._lock:
                if self._active is stream:
                    self._active = None

    def cancel_active(self) -> bool:
        """Cancel the active stream. Returns True if one was running."""
        with self._lock:
            stream, self._active = self._active, None
        if stream is None:
            return False
        stream.cancel()
        logger.debug("Cancelled active text stream")
        return True

    def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        if not snapshot.visible:
            self.cancel_active()
