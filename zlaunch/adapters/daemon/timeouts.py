"""Timeouts used by the control socket, the client and process management.

All values are in seconds.
"""


class DaemonTimeouts:
    """Timeout constants for daemon operations.

    Groups:
        SOCKET_*: Client socket operations
        READY_*: Waiting for a freshly spawned daemon to answer health
        QUIT_* / SIGTERM_* / SIGKILL_*: Stopping a daemon
        SERVER_*: Control endpoint internals
    """

    SOCKET_OPERATION: float = 5.0
    """Client connect/send/receive timeout for ordinary commands.

    Requests are bounded read-then-write cycles; a reply that takes longer
    than this means the daemon is wedged, not busy.
    """

    HEALTH_CHECK: float = 1.0
    """Timeout for is_daemon_running() and the stale socket check."""

    READY_WAIT: float = 10.0
    """Maximum time to wait for a spawned daemon to answer health.

    Startup loads config, binds the socket and kicks off the initial
    refresh in the background, so readiness normally takes well under a
    second. The margin covers slow disks and cold Python imports.
    """

    READY_CHECK_INTERVAL: float = 0.1
    """Interval between health checks while waiting for readiness."""

    QUIT_WAIT: float = 3.0
    """Time to wait for the process to exit after a quit command."""

    SIGTERM_WAIT: float = 5.0
    """Time to wait for a clean exit after SIGTERM before escalating."""

    SIGKILL_WAIT: float = 2.0
    """Time to wait for the OS to reap the process after SIGKILL."""

    DEATH_CHECK_INTERVAL: float = 0.1
    """Interval between liveness checks while waiting for exit."""

    SERVER_ACCEPT: float = 1.0
    """Timeout on accept() so the accept loop notices shutdown promptly."""

    SERVER_CLIENT: float = 5.0
    """Per-connection read timeout; a silent client can't pin a worker."""

    SERVER_WORKERS: int = 4
    """Size of the thread pool handling accepted connections."""
