"""
=============================================================================
HTTP REQUEST DECODER
=============================================================================

Turns the front of a connection's byte accumulator into exactly one
HTTP/1.1 request, or tells the caller why it cannot (yet).

=============================================================================
DECODE OUTCOMES
=============================================================================

Every call to decode() returns exactly one of three values:

    ┌───────────────┬───────────────────────────────────────────────────────┐
    │ Complete      │ A full request sits at the front of the buffer.       │
    │               │ bytes_consumed says where it ends.                    │
    ├───────────────┼───────────────────────────────────────────────────────┤
    │ Incomplete    │ Not an error. More bytes must arrive before the       │
    │               │ request can be decoded. Retry from the same offset.   │
    ├───────────────┼───────────────────────────────────────────────────────┤
    │ Invalid       │ The request can never become valid. The connection    │
    │               │ answers 400 and closes.                               │
    └───────────────┴───────────────────────────────────────────────────────┘

Structural checks (request line, method, framing headers) run before any
body is touched, so a bad request fails fast and a slow request is never
mistaken for a bad one.

=============================================================================
FRAMING
=============================================================================

    GET /path HTTP/1.1\r\n          ─┐
    Host: example.com\r\n            │  header section
    Content-Length: 5\r\n           ─┘
    \r\n                             ◄── separator (4 bytes incl. the CRLF above)
    hello                            ◄── body: exactly Content-Length bytes
    GET /next HTTP/1.1\r\n ...       ◄── pipelined data, left in the buffer

Without Content-Length the request carries no framed body. Up to
max_body_fallback bytes after the separator are still exposed as the body
and the truncated flag reports whether more data follows, but only the
header section is consumed, so a pipelined request right behind it is
decoded on the next call.

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union


logger = logging.getLogger(__name__)


HEADER_TERMINATOR = b"\r\n\r\n"
DEFAULT_BODY_FALLBACK = 8192

# Invalid reasons. These strings end up in the 400 response body.
MALFORMED_REQUEST_LINE = "malformed request line"
UNSUPPORTED_METHOD = "unsupported method"
MALFORMED_HEADER = "malformed header"
CHUNKED_NOT_SUPPORTED = "chunked not supported"
INVALID_CONTENT_LENGTH = "invalid content-length"
REQUEST_TOO_LARGE = "request too large"


class RequestMethod(str, Enum):
    """Methods the decoder accepts. Matching is exact and case-sensitive."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"


class HTTPParseError(Exception):
    """
    Raised inside the decoder when a request is permanently malformed.

    Never escapes decode(): it is converted into an Invalid outcome whose
    reason is the exception message.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class ParsedRequest:
    """
    A fully decoded HTTP request.

    Attributes:
        method:    One of RequestMethod.
        path:      Request target exactly as sent ("/a?b=1").
        version:   Protocol token from the request line ("HTTP/1.1").
        headers:   Lowercase header name → trimmed value.
        body:      str for text/* and JSON content types, bytes otherwise.
        truncated: True when bytes remain in the buffer beyond the body.
    """

    method: RequestMethod
    path: str
    version: str = "HTTP/1.1"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Union[str, bytes] = b""
    truncated: bool = False

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @property
    def is_keep_alive(self) -> bool:
        """
        True only when the client sent `Connection: keep-alive`.

        HTTP/1.1 would default to persistent connections; this server
        persists only on an explicit request, whatever the version.
        """
        return self.headers.get("connection", "").lower() == "keep-alive"


@dataclass(frozen=True)
class Complete:
    request: ParsedRequest
    bytes_consumed: int


@dataclass(frozen=True)
class Incomplete:
    pass


@dataclass(frozen=True)
class Invalid:
    reason: str


DecodeOutcome = Union[Complete, Incomplete, Invalid]

# Incomplete carries no data, one instance is enough.
INCOMPLETE = Incomplete()


class RequestDecoder:
    """
    Decodes one request from the front of a byte buffer.

    The decoder holds configuration only, never connection state, so one
    instance can be shared by every connection in the process.

    ==========================================================================
    ALGORITHM
    ==========================================================================

        1. Find CRLF CRLF ─────────── missing? → Incomplete
        2. Request line ───────────── not 3 tokens? → Invalid
        3. Method ─────────────────── unknown? → Invalid
        4. Headers ────────────────── no colon? → Invalid
        5. Transfer-Encoding ──────── chunked? → Invalid
        6. Content-Length ─────────── not an integer? → Invalid
        7. Body ───────────────────── short of Content-Length? → Incomplete
        8. Complete(request, bytes_consumed)

    ==========================================================================
    """

    SUPPORTED_METHODS = frozenset(m.value for m in RequestMethod)

    def __init__(
        self,
        max_body_fallback: int = DEFAULT_BODY_FALLBACK,
        max_buffer_size: Optional[int] = None,
    ):
        """
        Args:
            max_body_fallback: Body window when Content-Length is absent.
            max_buffer_size:   Reject a header section still unterminated
                               past this many bytes. None disables the cap.
        """
        self.max_body_fallback = max_body_fallback
        self.max_buffer_size = max_buffer_size

    def decode(self, data: bytes) -> DecodeOutcome:
        """
        Attempt to extract exactly one request from the front of data.

        Pure: the same buffer always yields an equal outcome.
        """
        header_end = data.find(HEADER_TERMINATOR)
        if header_end == -1:
            if self.max_buffer_size is not None and len(data) > self.max_buffer_size:
                return Invalid(REQUEST_TOO_LARGE)
            return INCOMPLETE

        try:
            return self._decode_framed(data, header_end)
        except HTTPParseError as e:
            return Invalid(e.reason)

    def _decode_framed(self, data: bytes, header_end: int) -> DecodeOutcome:
        header_section = data[:header_end].decode("utf-8", errors="replace")
        lines = header_section.split("\r\n")

        method, path, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        if headers.get("transfer-encoding") == "chunked":
            raise HTTPParseError(CHUNKED_NOT_SUPPORTED)

        content_length = self._parse_content_length(headers)

        # ─────────────────────────────────────────────────────────────────
        # BODY WINDOW
        # ─────────────────────────────────────────────────────────────────
        body_start = header_end + len(HEADER_TERMINATOR)
        if content_length is None:
            effective_length = self.max_body_fallback
            framed_length = 0
        else:
            effective_length = content_length
            framed_length = max(content_length, 0)

        body = data[body_start:body_start + max(effective_length, 0)]
        truncated = len(data) > body_start + effective_length

        if content_length is not None and len(body) < content_length:
            return INCOMPLETE

        content_type = headers.get("content-type", "")
        if content_type.startswith("text/") or "json" in content_type:
            body = body.decode("utf-8", errors="replace")
        else:
            body = bytes(body)

        request = ParsedRequest(
            method=method,
            path=path,
            version=version,
            headers=headers,
            body=body,
            truncated=truncated,
        )
        return Complete(request=request, bytes_consumed=body_start + framed_length)

    def _parse_request_line(self, line: str) -> tuple[RequestMethod, str, str]:
        """
        Split "METHOD SP PATH SP VERSION" on single spaces.

        Two spaces in a row produce an empty token and therefore four
        tokens, which is rejected.
        """
        parts = line.split(" ")
        if len(parts) != 3:
            raise HTTPParseError(MALFORMED_REQUEST_LINE)

        method, path, version = parts
        if method not in self.SUPPORTED_METHODS:
            raise HTTPParseError(UNSUPPORTED_METHOD)

        return RequestMethod(method), path, version

    def _parse_headers(self, lines: list[str]) -> Dict[str, str]:
        """
        Parse "Name: value" lines into a lowercase-keyed dict.

        A repeated header replaces the earlier value (last write wins).
        Folded continuation lines are not supported and fail as malformed.
        """
        headers: Dict[str, str] = {}

        for line in lines:
            if not line.strip():
                continue

            name, sep, value = line.partition(":")
            name = name.strip().lower()
            if not sep or not name:
                raise HTTPParseError(MALFORMED_HEADER)

            headers[name] = value.strip()

        return headers

    def _parse_content_length(self, headers: Dict[str, str]) -> Optional[int]:
        raw = headers.get("content-length")
        if raw is None:
            return None

        # ASCII digits only; int() alone would take "+5", "1_0" and non-ASCII digits
        digits = raw[1:] if raw.startswith("-") else raw
        if not (digits.isascii() and digits.isdigit()):
            raise HTTPParseError(INVALID_CONTENT_LENGTH)

        content_length = int(raw, 10)

        if content_length < 0:
            # Accepted for compatibility; frames as an empty body.
            logger.warning(f"Negative Content-Length accepted: {content_length}")

        return content_length


# =============================================================================
# CONVENIENCE FUNCTION
# =============================================================================

_default_decoder = RequestDecoder()


def decode_request(data: bytes) -> DecodeOutcome:
    """Decode with the default settings (8 KB fallback, no buffer cap)."""
    return _default_decoder.decode(data)
