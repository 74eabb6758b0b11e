"""Progress feedback for CLI commands."""

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

if TYPE_CHECKING:
    from zlaunch.ports.daemon import DaemonManager

logger = logging.getLogger(__name__)


def start_daemon_with_progress(
    daemon_manager: "DaemonManager",
    quiet: bool = False,
    console: Console | None = None,
) -> bool:
    """Start the daemon, showing a spinner while waiting for readiness.

    Args:
        daemon_manager: Daemon manager instance (injected dependency)
        quiet: Suppress progress output
        console: Console to draw on (default: stderr)

    Returns:
        True if the daemon is running

    Raises:
        RuntimeError: If the daemon fails to start
    """
    if daemon_manager.is_running():
        return True

    if quiet:
        return daemon_manager.start()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
        console=console or Console(stderr=True),
    ) as progress:
        task = progress.add_task("Starting zlaunch daemon...", total=None)
        try:
            result = daemon_manager.start()
        except RuntimeError as e:
            logger.warning("Failed to start daemon", exc_info=True)
            progress.update(task, description=f"Failed to start daemon: {e}")
            raise
        progress.update(task, description="Daemon started")
        return result
