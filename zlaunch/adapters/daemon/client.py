"""Client side of the control socket, used by the CLI."""

import contextlib
import logging
import socket
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from zlaunch.adapters.daemon.protocol import (
    ProtocolError,
    Request,
    Response,
    receive_message,
    send_message,
)
from zlaunch.adapters.daemon.timeouts import DaemonTimeouts
from zlaunch.shared.config_io import get_socket_path

logger = logging.getLogger(__name__)


@contextmanager
def daemon_socket_connection(
    socket_path: Path,
    timeout: float = DaemonTimeouts.SOCKET_OPERATION,
) -> Iterator[socket.socket]:
    """Context manager for control socket connections.

    Args:
        socket_path: Path to the Unix domain socket.
        timeout: Socket operation timeout in seconds.

    Yields:
        Connected socket ready for one request/response exchange.

    Raises:
        ConnectionRefusedError: If nothing is accepting connections.
        FileNotFoundError: If the socket file doesn't exist.
        TimeoutError: If the connection times out.
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(str(socket_path))
        yield sock
    finally:
        with contextlib.suppress(OSError):
            sock.close()


class DaemonError(Exception):
    """Base exception for client-side daemon errors."""

    pass


class DaemonNotRunningError(DaemonError):
    """Raised when no daemon is listening on the control socket."""

    def __init__(self, socket_path: Path) -> None:
        super().__init__(f"No daemon listening on {socket_path}")
        self.socket_path = socket_path


class DaemonRequestError(DaemonError):
    """Raised when the daemon answers with an error reply."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class DaemonClient:
    """Sends single commands to a running daemon.

    Args:
        socket_path: Control socket (default: $XDG_RUNTIME_DIR/zlaunch.sock)
        timeout: Socket timeout per request.
    """

    def __init__(
        self,
        socket_path: Path | None = None,
        timeout: float = DaemonTimeouts.SOCKET_OPERATION,
    ) -> None:
        self.socket_path = socket_path or get_socket_path()
        self.timeout = timeout
        self._next_id = 1

    def send(self, command: str, args: dict[str, Any] | None = None) -> Response:
        """Send a command and return the raw response.

        Raises:
            DaemonNotRunningError: If the socket is missing or refuses.
            DaemonError: If the exchange fails midway.
        """
        request = Request(command=command, args=args or {}, request_id=self._next_id)
        self._next_id += 1
        logger.debug(f"Sending {command} to {self.socket_path}")

        try:
            with daemon_socket_connection(self.socket_path, timeout=self.timeout) as sock:
                send_message(sock, request)
                return receive_message(sock, Response)
        except (FileNotFoundError, ConnectionRefusedError) as e:
            raise DaemonNotRunningError(self.socket_path) from e
        except (ProtocolError, OSError) as e:
            raise DaemonError(f"Daemon communication failed: {e}") from e

    def call(self, command: str, args: dict[str, Any] | None = None) -> Any:
        """Send a command and return its result.

        Raises:
            DaemonNotRunningError: If no daemon is running.
            DaemonRequestError: If the daemon replied with an error.
            DaemonError: If the exchange fails midway.
        """
        response = self.send(command, args)
        if response.is_error():
            raise DaemonRequestError(
                response.error_code or 500, response.error_message or "Unknown error"
            )
        return response.result


def _health(socket_path: Path) -> dict[str, Any] | None:
    if not socket_path.exists():
        return None
    try:
        with daemon_socket_connection(socket_path, timeout=DaemonTimeouts.HEALTH_CHECK) as sock:
            send_message(sock, Request(command="health"))
            response = receive_message(sock, Response)
    except (OSError, ProtocolError):
        return None
    if response.is_error() or not isinstance(response.result, dict):
        return None
    return response.result


def is_daemon_running(socket_path: Path | None = None) -> bool:
    """Check whether a daemon answers health on the control socket."""
    return _health(socket_path or get_socket_path()) is not None


def socket_accepts_connections(socket_path: Path) -> bool:
    """Whether some process is listening on ``socket_path``.

    Only a refused or missing socket counts as dead. A listener that
    accepts but never replies, such as a daemon whose workers are all
    busy, still owns the address.
    """
    try:
        with daemon_socket_connection(socket_path, timeout=DaemonTimeouts.HEALTH_CHECK):
            return True
    except (ConnectionRefusedError, FileNotFoundError):
        return False
    except OSError as e:
        logger.debug(f"Connect to {socket_path} failed ({e}), assuming it is in use")
        return True


def get_daemon_pid(socket_path: Path | None = None) -> int | None:
    """Get the daemon PID from its health reply.

    Lets callers recover the PID even when the PID file is missing.
    """
    result = _health(socket_path or get_socket_path())
    if result is None:
        return None
    pid = result.get("pid")
    return pid if isinstance(pid, int) else None
