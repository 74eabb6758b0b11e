"""Index source port.

A source knows how to build the full entry list for one module. The
registry decides when to call it and swaps the result in atomically.
"""

from collections.abc import Sequence
from typing import Protocol

from zlaunch.domain.entities import Entry
from zlaunch.domain.value_objects import Module, RefreshPolicy


class IndexSource(Protocol):
    """Protocol for building one module's entries."""

    @property
    def module(self) -> Module: ...

    @property
    def policy(self) -> RefreshPolicy: ...

    def build(self) -> Sequence[Entry]:
        """Build a complete, new generation of entries.

        Called without any registry lock held; may do blocking I/O.

        Raises:
            Exception: Any failure is reported as an IndexRefreshFailure.
        """
        ...
