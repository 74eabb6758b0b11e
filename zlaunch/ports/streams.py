"""Port for streamed text producers such as AI chat backends."""

from collections.abc import Iterator
from typing import Protocol


class TextStream(Protocol):
    """A lazy, cancellable sequence of text chunks.

    Iteration yields chunks as they arrive. After cancel() the iterator
    must stop yielding and release its transport.
    """

    def __iter__(self) -> Iterator[str]: ...

    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...
