"""Port interface for daemon process management."""

from typing import Protocol


class DaemonManager(Protocol):
    """Protocol for managing the background daemon process."""

    def is_running(self) -> bool:
        """True if the daemon answers health checks."""
        ...

    def ensure_running(self) -> bool:
        """Start the daemon if needed.

        Returns:
            True if the daemon is running (or was started)
        """
        ...

    def start(self) -> bool:
        """Start the daemon in the background.

        Raises:
            RuntimeError: If start fails
        """
        ...

    def stop(self, timeout: float = 5.0) -> bool:
        """Stop the daemon; True once it is no longer running."""
        ...

    def status(self) -> dict:
        ...
