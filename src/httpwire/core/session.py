"""
=============================================================================
CONNECTION SESSION
=============================================================================

The per-connection state machine. It owns the byte accumulator for one TCP
connection and turns whatever chunks the socket delivers into an ordered
sequence of request/response exchanges.

The session never touches a socket. Bytes come in through feed(); response
bytes leave through the write callable supplied by the transport. That keeps
every buffering and keep-alive decision testable without a network.

=============================================================================
STATE MACHINE
=============================================================================

    AWAITING_DATA ──feed()──► DECODING ──Incomplete──► AWAITING_DATA
                                 │
                                 ├──Invalid──► WRITING (400) ──► CLOSED
                                 │
                                 └──Complete──► DISPATCHING ──► WRITING
                                                                   │
                          ┌──── keep-alive ──── TRIMMING ◄─────────┤
                          │                                        │
                bytes left? ── yes ──► DECODING             not keep-alive
                          │                                        │
                          no                                       ▼
                          ▼                                     CLOSED
                    AWAITING_DATA

=============================================================================
ORDERING
=============================================================================

Pipelined requests are answered strictly in arrival order. The response to
request N is handed to write() before request N+1 is decoded, and write()
blocks until the bytes are flushed, so responses can never overtake one
another.

=============================================================================
"""

import logging
import time
import uuid
from enum import Enum
from typing import Callable, Optional

from ..access_log import AccessLog
from ..http.request import (
    Complete,
    DecodeOutcome,
    Incomplete,
    Invalid,
    ParsedRequest,
    RequestDecoder,
)
from ..http.response import ResponseSpec, encode_response


logger = logging.getLogger(__name__)


Handler = Callable[[ParsedRequest], ResponseSpec]
Writer = Callable[[bytes], None]


class SessionState(Enum):
    AWAITING_DATA = "awaiting_data"
    DECODING = "decoding"
    DISPATCHING = "dispatching"
    WRITING = "writing"
    TRIMMING = "trimming"
    CLOSED = "closed"


class ConnectionSession:
    """
    Buffers one connection's bytes and drives request/response exchanges.

    Args:
        handler:            Called once per decoded request.
        write:              Sends bytes to the peer; blocks until flushed and
                            raises on failure.
        decoder:            Shared RequestDecoder (default settings if None).
        keep_alive_timeout: Advertised in the Keep-Alive response header.
        keep_alive_max:     Advertised in the Keep-Alive response header.
        connection_id:      Prefix for log lines.
        client_address:     (ip, port) of the peer, for the access log.
        access_log:         Where exchanges are recorded.

    Usage:
        session = ConnectionSession(handler, sock.sendall)
        while session.is_open:
            chunk = sock.recv(8192)
            if not chunk:
                break
            session.feed(chunk)
    """

    def __init__(
        self,
        handler: Handler,
        write: Writer,
        decoder: Optional[RequestDecoder] = None,
        keep_alive_timeout: int = 5,
        keep_alive_max: int = 1000,
        connection_id: Optional[str] = None,
        client_address: tuple[str, int] = ("", 0),
        access_log: Optional[AccessLog] = None,
    ):
        self._handler = handler
        self._write = write
        self._decoder = decoder or RequestDecoder()
        self.keep_alive_timeout = keep_alive_timeout
        self.keep_alive_max = keep_alive_max
        self.id = connection_id or str(uuid.uuid4())[:8]
        self.client_address = client_address
        self._access_log = access_log or AccessLog()

        self._buffer = bytearray()
        self._state = SessionState.AWAITING_DATA
        self.requests_handled = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is not SessionState.CLOSED

    @property
    def buffered(self) -> int:
        """Bytes received but not yet consumed by a request."""
        return len(self._buffer)

    # =========================================================================
    # INPUT
    # =========================================================================

    def feed(self, data: bytes) -> bool:
        """
        Append received bytes and process every request they complete.

        Returns:
            True if the connection should stay open for more data.
        """
        if self._state is SessionState.CLOSED:
            return False

        self._buffer += data

        while self._state is not SessionState.CLOSED and self._buffer:
            if not self._step():
                break

        return self.is_open

    def close(self):
        """Terminate the session and drop any unprocessed bytes."""
        if self._state is SessionState.CLOSED:
            return
        if self._buffer:
            logger.debug(f"[{self.id}] Discarding {len(self._buffer)} unprocessed bytes")
        self._buffer.clear()
        self._state = SessionState.CLOSED

    # =========================================================================
    # ONE CYCLE
    # =========================================================================

    def _step(self) -> bool:
        """
        Decode and answer at most one request.

        Returns True when another request may already be buffered and
        decoding should continue without waiting for a read.
        """
        self._state = SessionState.DECODING
        outcome = self._decode()

        if isinstance(outcome, Incomplete):
            self._state = SessionState.AWAITING_DATA
            return False

        if isinstance(outcome, Invalid):
            logger.info(f"[{self.id}] Rejecting request: {outcome.reason}")
            self._reject(outcome.reason)
            return False

        return self._dispatch(outcome)

    def _decode(self) -> DecodeOutcome:
        try:
            return self._decoder.decode(self._buffer)
        except Exception as e:
            logger.exception(f"[{self.id}] Decoder error: {e}")
            return Invalid(str(e) or type(e).__name__)

    def _dispatch(self, outcome: Complete) -> bool:
        request = outcome.request
        started = time.monotonic()

        self._state = SessionState.DISPATCHING
        try:
            response = self._handler(request)
            keep_alive = request.is_keep_alive
            payload = encode_response(
                response.status,
                response.body,
                self._connection_headers(response, keep_alive),
            )
        except Exception as e:
            logger.exception(f"[{self.id}] Handler error: {e}")
            self._reject(str(e) or type(e).__name__, request)
            return False

        if not self._send(payload):
            return False

        self.requests_handled += 1
        self._access_log.record(
            connection_id=self.id,
            client_ip=self.client_address[0],
            method=request.method.value,
            path=request.path,
            status_code=response.status,
            content_length=len(payload),
            duration_ms=(time.monotonic() - started) * 1000,
            keep_alive=keep_alive,
        )

        if not keep_alive:
            self.close()
            return False

        self._state = SessionState.TRIMMING
        del self._buffer[:outcome.bytes_consumed]

        self._state = SessionState.AWAITING_DATA
        return bool(self._buffer)

    def _connection_headers(self, response: ResponseSpec, keep_alive: bool) -> dict:
        headers = dict(response.headers)
        if keep_alive:
            headers["Connection"] = "keep-alive"
            headers["Keep-Alive"] = f"timeout={self.keep_alive_timeout}, max={self.keep_alive_max}"
        else:
            headers["Connection"] = "close"
        return headers

    # =========================================================================
    # OUTPUT
    # =========================================================================

    def _reject(self, reason: str, request: Optional[ParsedRequest] = None):
        """Answer 400 with the failure reason and close, whatever keep-alive said."""
        payload = encode_response(
            400,
            f"Bad Request: {reason}",
            {"Content-Type": "text/plain", "Connection": "close"},
        )
        if self._send(payload):
            self._access_log.record(
                connection_id=self.id,
                client_ip=self.client_address[0],
                method=request.method.value if request else "-",
                path=request.path if request else "-",
                status_code=400,
                content_length=len(payload),
                duration_ms=0.0,
                keep_alive=False,
            )
        self.close()

    def _send(self, payload: bytes) -> bool:
        self._state = SessionState.WRITING
        try:
            self._write(payload)
        except Exception as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            self.close()
            return False
        return True
