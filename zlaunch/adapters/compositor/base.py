"""Shared helpers for socket-based compositor variants."""

import contextlib
import socket
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

LAUNCHER_CLASS = "zlaunch"
"""Window class of the picker itself; never listed as a switch target."""


@contextmanager
def compositor_socket(socket_path: Path, timeout: float) -> Iterator[socket.socket]:
    """Open a fresh connection to a compositor IPC socket.

    Compositor sockets serve one request per connection, so every call gets
    its own socket and a known-broken one is never reused.

    Raises:
        FileNotFoundError: If the socket file doesn't exist.
        ConnectionRefusedError: If nothing is listening.
        TimeoutError: If connecting takes longer than timeout.
    """
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(str(socket_path))
        yield sock
    finally:
        with contextlib.suppress(OSError):
            sock.close()


def read_until_eof(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def read_line(sock: socket.socket) -> bytes:
    """Read one newline-terminated reply.

    Raises:
        ConnectionError: If the peer closes before a full line arrives.
    """
    buffer = b""
    while b"\n" not in buffer:
        chunk = sock.recv(65536)
        if not chunk:
            if buffer:
                return buffer
            raise ConnectionError("Compositor closed the connection without replying")
        buffer += chunk
    return buffer.split(b"\n", 1)[0]


def display_title(title: str, app_id: str) -> str:
    """Window title, falling back to the app id for untitled windows."""
    return title if title.strip() else app_id


def is_launcher_window(app_id: str) -> bool:
    return app_id == LAUNCHER_CLASS
