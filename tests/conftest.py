"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpwire import HTTPServer, ServerConfig
from httpwire.handlers import demo_handler
from httpwire.http import ParsedRequest, ResponseSpec


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample keep-alive GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
        + body
    )


class Recorder:
    """Write callable that keeps every payload it receives."""

    def __init__(self):
        self.writes: list[bytes] = []

    def __call__(self, data: bytes) -> None:
        self.writes.append(data)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


def path_echo_handler(request: ParsedRequest) -> ResponseSpec:
    """Answers with the request path so response order is observable."""
    return ResponseSpec(status=200, body=request.path)


def split_response(data: bytes) -> tuple[str, dict, bytes]:
    """Split one encoded response into (status line, headers, body)."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return lines[0], headers, body


def recv_response(sock: socket.socket) -> Optional[bytes]:
    """
    Read exactly one Content-Length framed response from a socket.

    Never reads past the end of the response, so pipelined responses that
    arrived in the same segment stay in the socket for the next call.
    """
    head = b""
    while not head.endswith(b"\r\n\r\n"):
        byte = sock.recv(1)
        if not byte:
            return head or None
        head += byte

    content_length = 0
    for line in head.split(b"\r\n")[1:]:
        name, _, value = line.partition(b":")
        if name.strip().lower() == b"content-length":
            content_length = int(value.strip())

    body = b""
    while len(body) < content_length:
        chunk = sock.recv(content_length - len(body))
        if not chunk:
            break
        body += chunk

    return head + body


class TestServer:
    """Runs an HTTPServer on a free port in a background thread."""

    __test__ = False  # Not a test class, despite the name

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self) -> tuple[str, int]:
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def connect(self) -> socket.socket:
        return socket.create_connection(self.address, timeout=5.0)

    def stop(self):
        self.server.shutdown(timeout=2.0)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server() -> Generator[TestServer, None, None]:
    """A running demo server: "/" answers 200, anything else 404."""
    server = HTTPServer(demo_handler, ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        log_level="WARNING",
    ))

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
