"""
=============================================================================
HTTP/1.1 WIRE FORMAT
=============================================================================

The protocol layer: bytes in, structured requests out; structured
responses in, bytes out. Nothing here touches a socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ REQUEST DECODER (request.py)                                        │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   b"GET / HTTP/1.1\r\nConnection: keep-alive\r\n\r\n..."     │
    │ Output:  Complete(ParsedRequest(...), bytes_consumed=42)            │
    │          Incomplete()                                               │
    │          Invalid("unsupported method")                              │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │ RESPONSE ENCODER (response.py)                                      │
    │ ─────────────────────────────────────────────────────────────────── │
    │ Input:   ResponseSpec(status=200, body="hi", headers={...})         │
    │ Output:  b"HTTP/1.1 200 OK\r\nContent-Length: 2\r\n...\r\n\r\nhi"   │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import (
    RequestMethod,
    ParsedRequest,
    HTTPParseError,
    Complete,
    Incomplete,
    Invalid,
    DecodeOutcome,
    RequestDecoder,
    decode_request,
)
from .response import (
    ResponseSpec,
    encode_response,
    reason_phrase,
    ok,
    bad_request,
    not_found,
    internal_error,
)

__all__ = [
    # Request decoding
    "RequestMethod",
    "ParsedRequest",
    "HTTPParseError",
    "Complete",
    "Incomplete",
    "Invalid",
    "DecodeOutcome",
    "RequestDecoder",
    "decode_request",

    # Response encoding
    "ResponseSpec",
    "encode_response",
    "reason_phrase",
    "ok",
    "bad_request",
    "not_found",
    "internal_error",
]
