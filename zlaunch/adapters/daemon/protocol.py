"""Wire format of the control socket.

Newline-delimited JSON over a Unix stream socket, one request per
connection:

    request:  {"command": "show", "args": {"modes": ["apps"]}, "id": 1}
    response: {"result": {...}, "error": null, "id": 1}
    error:    {"result": null, "error": {"code": 422, "message": "..."}, "id": 1}
"""

import json
import logging
from enum import IntEnum
from typing import Any

logger = logging.getLogger(__name__)

MAX_MESSAGE_BYTES = 1024 * 1024


class ProtocolError(Exception):
    """Malformed, oversized or truncated message."""

    pass


class ErrorCode(IntEnum):
    """Error codes carried in error replies."""

    PROTOCOL = 400
    NOT_FOUND = 404
    VALIDATION = 422
    INTERNAL = 500
    COMPOSITOR_UNAVAILABLE = 503


class Request:
    """Control request message."""

    def __init__(self, command: str, args: dict[str, Any] | None = None, request_id: int = 1):
        """Create a request.

        Args:
            command: Command name (e.g., "show")
            args: Command arguments
            request_id: Echoed back in the response
        """
        self.command = command
        self.args = args or {}
        self.id = request_id

    def to_json(self) -> str:
        data = {"command": self.command, "args": self.args, "id": self.id}
        return json.dumps(data) + "\n"

    @classmethod
    def from_json(cls, line: str) -> "Request":
        """Deserialize a request line.

        Raises:
            ProtocolError: If the JSON is invalid or fields have the wrong type.
        """
        try:
            data = json.loads(line.strip())
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProtocolError("Request must be a JSON object")

        command = data.get("command")
        if not isinstance(command, str) or not command:
            raise ProtocolError("Request missing 'command' field")

        args = data.get("args")
        if args is None:
            args = {}
        if not isinstance(args, dict):
            raise ProtocolError("'args' must be a JSON object")

        request_id = data.get("id", 1)
        if not isinstance(request_id, int) or isinstance(request_id, bool):
            raise ProtocolError("'id' must be an integer")

        return cls(command=command, args=args, request_id=request_id)


class Response:
    """Control response message."""

    def __init__(
        self,
        result: Any = None,
        error: dict[str, Any] | None = None,
        request_id: int = 1,
    ):
        self.result = result
        self.error = error
        self.id = request_id

    def to_json(self) -> str:
        data = {"result": self.result, "error": self.error, "id": self.id}
        return json.dumps(data) + "\n"

    @classmethod
    def from_json(cls, line: str) -> "Response":
        """Deserialize a response line.

        Raises:
            ProtocolError: If the JSON is invalid
        """
        try:
            data = json.loads(line.strip())
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ProtocolError("Response must be a JSON object")

        error = data.get("error")
        if error is not None and not isinstance(error, dict):
            raise ProtocolError("'error' must be an object or null")

        return cls(
            result=data.get("result"),
            error=error,
            request_id=data.get("id", 1),
        )

    @classmethod
    def success(cls, result: Any, request_id: int = 1) -> "Response":
        return cls(result=result, error=None, request_id=request_id)

    @classmethod
    def error(cls, code: int, message: str, request_id: int = 1) -> "Response":
        return cls(
            result=None, error={"code": int(code), "message": message}, request_id=request_id
        )

    def is_error(self) -> bool:
        return self.error is not None

    @property
    def error_code(self) -> int | None:
        return self.error.get("code") if self.error else None

    @property
    def error_message(self) -> str | None:
        return self.error.get("message") if self.error else None


def send_message(sock, message: Request | Response) -> None:
    """Send a message over a socket.

    Raises:
        ProtocolError: If the send fails
    """
    try:
        sock.sendall(message.to_json().encode("utf-8"))
    except OSError as e:
        raise ProtocolError(f"Failed to send message: {e}") from e


def receive_message(sock, message_type: type[Request] | type[Response]) -> Request | Response:
    """Receive one newline-terminated message.

    Only the first message on a connection is read; anything after the
    delimiter is discarded with a warning.

    Raises:
        ProtocolError: If the peer closes early, the message is too large,
            or it fails to parse.
    """
    buffer = b""
    try:
        while b"\n" not in buffer:
            chunk = sock.recv(4096)
            if not chunk:
                if buffer:
                    # tolerate clients that close without a trailing newline
                    break
                raise ProtocolError("Connection closed")
            buffer += chunk
            if len(buffer) > MAX_MESSAGE_BYTES:
                raise ProtocolError(f"Message exceeds {MAX_MESSAGE_BYTES} bytes")
    except OSError as e:
        raise ProtocolError(f"Failed to receive message: {e}") from e

    message_bytes, _, remaining = buffer.partition(b"\n")
    if remaining:
        logger.warning(
            f"Received {len(remaining)} bytes after first message delimiter. "
            "Protocol expects one message per connection."
        )

    try:
        line = message_bytes.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ProtocolError(f"Message is not valid UTF-8: {e}") from e
    return message_type.from_json(line)
