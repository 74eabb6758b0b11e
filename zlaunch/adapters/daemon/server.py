"""Control endpoint: the daemon's Unix socket server.

The server:
1. Refuses to start if another process accepts connections on the socket
2. Accepts connections on a timed loop so shutdown is noticed promptly
3. Hands each connection to a small thread pool
4. Reads one request, writes one reply, closes the connection
"""

import contextlib
import logging
import os
import socket
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from zlaunch.adapters.daemon.client import socket_accepts_connections
from zlaunch.adapters.daemon.handler import CommandHandler
from zlaunch.adapters.daemon.protocol import (
    ErrorCode,
    ProtocolError,
    Request,
    Response,
    receive_message,
    send_message,
)
from zlaunch.adapters.daemon.timeouts import DaemonTimeouts
from zlaunch.domain.exceptions import AddressInUseError

logger = logging.getLogger(__name__)


class ControlServer:
    """Serves control requests on a Unix socket.

    Args:
        socket_path: Path of the listening socket.
        handler: Dispatches parsed requests.
        max_workers: Connections handled concurrently.
    """

    def __init__(
        self,
        socket_path: Path,
        handler: CommandHandler,
        max_workers: int = DaemonTimeouts.SERVER_WORKERS,
    ) -> None:
        self.socket_path = socket_path
        self.handler = handler
        self.max_workers = max_workers

        self.server_socket: socket.socket | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self.requests_served = 0
        self.started_at: float | None = None

    @property
    def running(self) -> bool:
        return self.server_socket is not None and not self._stop.is_set()

    def bind(self) -> None:
        """Create, bind and listen on the control socket.

        A socket file that refuses connections is a leftover from a crashed
        daemon and is removed. Any process that accepts a connection owns
        the address, however slow it is to answer.

        Raises:
            AddressInUseError: If a live daemon owns the socket, or another
                process wins a concurrent bind.
        """
        if self.socket_path.exists():
            if socket_accepts_connections(self.socket_path):
                raise AddressInUseError(str(self.socket_path))
            logger.warning(f"Removing stale socket: {self.socket_path}")
            with contextlib.suppress(FileNotFoundError):
                self.socket_path.unlink()

        self.socket_path.parent.mkdir(parents=True, exist_ok=True)

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.bind(str(self.socket_path))
        except OSError as e:
            sock.close()
            raise AddressInUseError(str(self.socket_path)) from e
        os.chmod(self.socket_path, 0o600)
        sock.listen(16)
        sock.settimeout(DaemonTimeouts.SERVER_ACCEPT)

        self.server_socket = sock
        self._executor = ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="zlaunch-control"
        )
        self.started_at = time.time()
        logger.info(f"Listening on {self.socket_path}")

    def handle_client(self, client_socket: socket.socket) -> None:
        """Serve a single connection: one request, one reply."""
        try:
            client_socket.settimeout(DaemonTimeouts.SERVER_CLIENT)
            request = receive_message(client_socket, Request)
            logger.debug(f"Received request: {request.command} {request.args}")

            response = self.handler.handle(request)
            with self._lock:
                self.requests_served += 1

            send_message(client_socket, response)
            logger.debug(
                f"Sent response to {request.command}: "
                f"{'error ' + str(response.error_code) if response.is_error() else 'ok'}"
            )
        except ProtocolError as e:
            logger.warning(f"Protocol error: {e}")
            try:
                send_message(client_socket, Response.error(ErrorCode.PROTOCOL, str(e)))
            except ProtocolError:
                logger.debug("Client went away before the error reply")
        except Exception as e:
            logger.exception(f"Error handling client: {e}")
        finally:
            client_socket.close()

    def serve_forever(self) -> None:
        """Accept connections until shutdown() is called.

        Raises:
            RuntimeError: If bind() has not been called.
        """
        if self.server_socket is None or self._executor is None:
            raise RuntimeError("Control server is not bound")

        logger.info("Control server started")
        while not self._stop.is_set():
            try:
                client_socket, _ = self.server_socket.accept()
            except TimeoutError:
                continue
            except OSError as e:
                if self._stop.is_set():
                    break
                logger.exception(f"Error in accept loop: {e}")
                time.sleep(0.1)
                continue

            try:
                self._executor.submit(self.handle_client, client_socket)
            except RuntimeError:
                # executor already shut down
                client_socket.close()
                break

        logger.info("Control server stopped")

    def shutdown(self) -> None:
        """Ask the accept loop to exit. Safe to call from any thread."""
        self._stop.set()

    def close(self) -> None:
        """Stop accepting, finish in-flight replies and remove the socket."""
        self._stop.set()
        if self.server_socket is not None:
            with contextlib.suppress(OSError):
                self.server_socket.close()
            self.server_socket = None
            with contextlib.suppress(FileNotFoundError):
                self.socket_path.unlink()
            logger.info(f"Cleaned up socket: {self.socket_path}")
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
