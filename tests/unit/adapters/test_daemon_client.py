"""Unit tests for the control socket client."""

import socket
import threading
from pathlib import Path
from unittest.mock import patch

import pytest

from zlaunch.adapters.daemon.client import (
    DaemonClient,
    DaemonError,
    DaemonNotRunningError,
    DaemonRequestError,
    get_daemon_pid,
    is_daemon_running,
    socket_accepts_connections,
)
from zlaunch.adapters.daemon.protocol import ErrorCode, Request, Response, receive_message


def serve_once(socket_path: Path, reply: Response | bytes) -> threading.Thread:
    """Answer a single connection with a canned reply."""
    server = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    server.bind(str(socket_path))
    server.listen(1)

    def run() -> None:
        conn, _ = server.accept()
        with conn:
            receive_message(conn, Request)
            conn.sendall(reply if isinstance(reply, bytes) else reply.to_json().encode())
        server.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    return thread


class TestDaemonClient:
    def test_missing_socket_is_not_running(self, short_tmp: Path) -> None:
        client = DaemonClient(short_tmp / "absent.sock")

        with pytest.raises(DaemonNotRunningError) as exc_info:
            client.call("show")

        assert exc_info.value.socket_path == short_tmp / "absent.sock"

    def test_refused_connection_is_not_running(self, short_tmp: Path) -> None:
        path = short_tmp / "dead.sock"
        dead = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        dead.bind(str(path))
        dead.close()

        with pytest.raises(DaemonNotRunningError):
            DaemonClient(path).call("show")

    def test_default_socket_path(self, short_tmp: Path) -> None:
        assert DaemonClient().socket_path == short_tmp / "zlaunch.sock"

    def test_call_returns_result(self, short_tmp: Path) -> None:
        path = short_tmp / "ok.sock"
        thread = serve_once(path, Response.success({"visible": True}))

        assert DaemonClient(path).call("show") == {"visible": True}
        thread.join(timeout=5)

    def test_error_reply_raises_request_error(self, short_tmp: Path) -> None:
        path = short_tmp / "err.sock"
        thread = serve_once(path, Response.error(ErrorCode.VALIDATION, "Unknown mode: 'x'"))

        with pytest.raises(DaemonRequestError) as exc_info:
            DaemonClient(path).call("show", {"modes": ["x"]})

        assert exc_info.value.code == 422
        assert exc_info.value.message == "Unknown mode: 'x'"
        thread.join(timeout=5)

    def test_send_returns_raw_error_response(self, short_tmp: Path) -> None:
        path = short_tmp / "raw.sock"
        thread = serve_once(path, Response.error(ErrorCode.NOT_FOUND, "gone"))

        response = DaemonClient(path).send("activate", {"window_id": "0x1"})

        assert response.error_code == 404
        thread.join(timeout=5)

    def test_garbled_reply_is_daemon_error(self, short_tmp: Path) -> None:
        path = short_tmp / "bad.sock"
        thread = serve_once(path, b"garbage\n")

        with pytest.raises(DaemonError) as exc_info:
            DaemonClient(path).call("show")

        assert not isinstance(exc_info.value, DaemonNotRunningError)
        thread.join(timeout=5)

    def test_request_ids_increase(self, short_tmp: Path) -> None:
        client = DaemonClient(short_tmp / "absent.sock")
        sent: list[int] = []

        def fake_send(sock, message):
            sent.append(message.id)
            raise FileNotFoundError

        with patch("zlaunch.adapters.daemon.client.daemon_socket_connection"):
            with patch("zlaunch.adapters.daemon.client.send_message", side_effect=fake_send):
                for _ in range(2):
                    with pytest.raises(DaemonNotRunningError):
                        client.send("hide")

        assert sent == [1, 2]


class TestHealthCheck:
    def test_missing_socket(self, short_tmp: Path) -> None:
        assert is_daemon_running(short_tmp / "absent.sock") is False
        assert get_daemon_pid(short_tmp / "absent.sock") is None

    def test_healthy_daemon(self, short_tmp: Path) -> None:
        path = short_tmp / "h.sock"
        thread = serve_once(path, Response.success({"status": "ok", "pid": 4242}))

        assert get_daemon_pid(path) == 4242
        thread.join(timeout=5)

    def test_error_reply_is_not_running(self, short_tmp: Path) -> None:
        path = short_tmp / "e.sock"
        thread = serve_once(path, Response.error(ErrorCode.INTERNAL, "sick"))

        assert is_daemon_running(path) is False
        thread.join(timeout=5)


class TestSocketAcceptsConnections:
    def test_missing_socket_is_dead(self, short_tmp: Path) -> None:
        assert socket_accepts_connections(short_tmp / "absent.sock") is False

    def test_refused_socket_is_dead(self, short_tmp: Path) -> None:
        path = short_tmp / "r.sock"
        leftover = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        leftover.bind(str(path))
        leftover.close()

        assert socket_accepts_connections(path) is False

    def test_silent_listener_is_alive(self, short_tmp: Path) -> None:
        path = short_tmp / "s.sock"
        listener = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        listener.bind(str(path))
        listener.listen(1)
        try:
            assert socket_accepts_connections(path) is True
            # a silent listener fails the health check all the same
            assert is_daemon_running(path) is False
        finally:
            listener.close()

    def test_other_connect_errors_count_as_alive(self, short_tmp: Path) -> None:
        with patch(
            "zlaunch.adapters.daemon.client.daemon_socket_connection",
            side_effect=TimeoutError("timed out"),
        ):
            assert socket_accepts_connections(short_tmp / "x.sock") is True
