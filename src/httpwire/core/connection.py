"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Glue between one client socket and one ConnectionSession.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

    Client sends:
        send("GET / HTTP/1.1\r\n\r\n")
        send("GET /x HTTP/1.1\r\n\r\n")

    Server might receive ANY of these:
        recv() → both requests in one chunk
        recv() → "GET / HT"  then  "TP/1.1\r\n\r\nGET /x ..."
        recv() → one request per chunk

The Connection does no framing at all. It hands every chunk to the session,
which accumulates bytes and decides where requests begin and end.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    accept() ──► Connection ──► serve(session)
                                   │
                                   ├── recv() ──► session.feed()   (repeat)
                                   │
                                   ├── peer closed / idle timeout / session closed
                                   │
                                   ▼
                                close()  shutdown(SHUT_WR) → drain → close

=============================================================================
"""

import socket
import time
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

from .session import ConnectionSession


logger = logging.getLogger(__name__)


# Upper bounds on reading leftover client data while closing
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket:        The client socket.
        address:       Client's (ip, port) tuple.
        id:            Unique connection identifier (for logging).
        created_at:    Timestamp when connection was accepted.
        last_activity: Timestamp of last read or write.
        buffer_size:   Bytes requested per recv().
        idle_timeout:  Seconds without data before giving up (None = never).
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)

    buffer_size: int = 8192
    idle_timeout: Optional[float] = None

    _closed: bool = field(default=False, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.idle_timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    @property
    def idle_time(self) -> float:
        """Seconds since last activity."""
        return time.time() - self.last_activity

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # I/O
    # =========================================================================

    def recv(self) -> bytes:
        """
        Receive the next chunk.

        Returns:
            Received bytes, or b"" if the peer closed or reset the connection.

        Raises:
            socket.timeout: If idle_timeout elapsed without data.
        """
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        self.last_activity = time.time()
        return data

    def send(self, data: bytes) -> None:
        """
        Send all of data, blocking until it is flushed.

        Used as the session's write callable, so failures propagate and
        the session closes itself.
        """
        self.socket.sendall(data)
        self.last_activity = time.time()

    def serve(self, session: ConnectionSession) -> None:
        """
        Pump bytes from the socket into the session until either side ends.

        Closing by the peer terminates the session at once. Whatever the
        session had buffered is discarded.
        """
        try:
            while session.is_open:
                try:
                    chunk = self.recv()
                except socket.timeout:
                    logger.debug(f"[{self.id}] Idle timeout after {self.idle_time:.2f}s")
                    break
                except OSError as e:
                    logger.warning(f"[{self.id}] Receive failed: {e}")
                    break

                if not chunk:
                    logger.debug(f"[{self.id}] Peer closed connection")
                    break

                session.feed(chunk)
        finally:
            session.close()

    # =========================================================================
    # CLOSING
    # =========================================================================

    def abort(self):
        """
        Wake the thread blocked in serve() so it ends the connection.

        Safe to call from any thread. The owning thread still runs close().
        """
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Already closed

    def close(self):
        """
        Close the connection gracefully.

            1. shutdown(SHUT_WR)  send FIN, the peer sees end of stream
            2. drain             read what the peer still sends, bounded
                                 by DRAIN_TIMEOUT and DRAIN_LIMIT
            3. close()           release the file descriptor
        """
        if self._closed:
            return
        self._closed = True

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        self._drain()

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.age:.2f}s")

    def _drain(self):
        deadline = time.monotonic() + DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # socket.timeout is an OSError too

        if drained >= DRAIN_LIMIT:
            logger.debug(f"[{self.id}] Gave up draining after {drained} bytes")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
