"""
=============================================================================
HTTP RESPONSE ENCODER
=============================================================================

Builds the exact wire bytes of an HTTP/1.1 response.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.1 200 OK\r\n              ← status line
    Content-Length: 14\r\n           ← always present, computed from body
    Content-Type: text/plain\r\n     ← default, caller may override
    Connection: keep-alive\r\n       ← caller headers, in the order given
    \r\n                             ← end of header block
    Cows will fly!                   ← raw body bytes

Defaults come first. A caller header with the identical name (exact,
case-sensitive match) replaces the default value in place; every other
caller header is appended after them.

=============================================================================
REASON PHRASES
=============================================================================

Only four codes carry their own phrase. Every other code is sent with
"OK", including 201 or 503. Clients ignore the phrase, and existing peers
of this server already see that behaviour, so it is kept.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Union


STATUS_REASONS: Dict[int, str] = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    500: "Internal Server Error",
}

DEFAULT_REASON = "OK"
DEFAULT_CONTENT_TYPE = "text/plain"


def reason_phrase(status: int) -> str:
    """Look up the reason phrase, falling back to "OK" for unknown codes."""
    return STATUS_REASONS.get(status, DEFAULT_REASON)


def encode_response(
    status: int,
    body: Union[str, bytes] = b"",
    headers: Optional[Mapping[str, str]] = None,
) -> bytes:
    """
    Serialize a response to bytes ready for socket.sendall().

    Args:
        status:  Numeric status code.
        body:    Text (UTF-8 encoded here) or raw bytes.
        headers: Extra headers. Override defaults on exact name match.

    Returns:
        Status line, header block, CRLF CRLF and body as one bytes object.
    """
    body_bytes = body.encode("utf-8") if isinstance(body, str) else bytes(body)

    # Dict update keeps the position of keys that already exist, so an
    # overridden default stays where the default was.
    response_headers = {
        "Content-Length": str(len(body_bytes)),
        "Content-Type": DEFAULT_CONTENT_TYPE,
    }
    if headers:
        response_headers.update(headers)

    lines = [f"HTTP/1.1 {status} {reason_phrase(status)}"]
    for name, value in response_headers.items():
        lines.append(f"{name}: {value}")
    lines.append("")

    header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
    return header_bytes + body_bytes


@dataclass
class ResponseSpec:
    """
    What a handler returns: status, body and extra headers.

    The session adds connection management headers before encoding, so
    handlers only describe the payload.
    """

    status: int = 200
    body: Union[str, bytes] = b""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def status_line(self) -> str:
        return f"HTTP/1.1 {self.status} {reason_phrase(self.status)}"

    def set_header(self, name: str, value: str) -> "ResponseSpec":
        """Set a header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self) -> bytes:
        return encode_response(self.status, self.body, self.headers)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def ok(body: Union[str, bytes] = "", content_type: Optional[str] = None) -> ResponseSpec:
    """Create a 200 OK response."""
    response = ResponseSpec(status=200, body=body)
    if content_type:
        response.set_header("Content-Type", content_type)
    return response


def bad_request(message: str = "Bad Request") -> ResponseSpec:
    """Create a 400 Bad Request response."""
    return ResponseSpec(status=400, body=message)


def not_found(message: str = "Not Found") -> ResponseSpec:
    """Create a 404 Not Found response."""
    return ResponseSpec(status=404, body=message)


def internal_error(message: str = "Internal Server Error") -> ResponseSpec:
    """Create a 500 Internal Server Error response."""
    return ResponseSpec(status=500, body=message)
