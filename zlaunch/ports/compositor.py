"""Compositor port.

Each supported compositor speaks its own IPC dialect. Variants implement
this protocol so call sites never branch on which compositor is running.
"""

from enum import Enum
from typing import Protocol

from zlaunch.domain.entities import WindowInfo


class Capabilities(str, Enum):
    """How much of the protocol a variant supports."""

    FULL = "full"  # windows and layer rules
    LIMITED = "limited"  # windows only
    NONE = "none"  # nothing; used when no compositor is detected


class Compositor(Protocol):
    """Protocol for a compositor IPC variant."""

    @property
    def name(self) -> str:
        """Short compositor name, e.g. "hyprland"."""
        ...

    @property
    def capabilities(self) -> Capabilities: ...

    def list_windows(self) -> list[WindowInfo]:
        """Enumerate client windows.

        Raises:
            OSError: On socket or transport failure.
        """
        ...

    def activate_window(self, window_id: str) -> None:
        """Focus a window.

        Raises:
            WindowNotFound: If the id no longer exists.
            OSError: On socket or transport failure.
        """
        ...

    def apply_layer_rule(self, rule: str) -> None:
        """Send a layer rule such as "blur,zlaunch".

        Raises:
            OSError: On socket or transport failure.
            ValueError: If the compositor rejects the rule.
        """
        ...

    def close(self) -> None:
        """Release any held connection."""
        ...
