"""
=============================================================================
httpwire: HTTP/1.1 FROM RAW BYTES
=============================================================================

An HTTP/1.1 request decoder and response encoder written directly against
the byte stream, plus the per-connection session that turns a fragmented
TCP stream into ordered request/response exchanges with keep-alive and
pipelining.

=============================================================================
PACKAGE LAYOUT
=============================================================================

    httpwire/
    ├── http/
    │   ├── request.py       RequestDecoder, ParsedRequest, DecodeOutcome
    │   └── response.py      encode_response, ResponseSpec
    ├── core/
    │   ├── session.py       ConnectionSession state machine
    │   ├── connection.py    socket ↔ session pump
    │   └── socket_server.py accept loop, thread per connection
    ├── handlers/            demo application
    ├── access_log.py        one line per exchange
    ├── config.py            ServerConfig
    └── server.py            HTTPServer

=============================================================================
QUICK START
=============================================================================

    from httpwire import HTTPServer, ServerConfig
    from httpwire.http import ok, not_found

    def handler(request):
        if request.path == "/":
            return ok("hello")
        return not_found()

    HTTPServer(handler, ServerConfig(port=8080)).run()

Not supported: chunked transfer-encoding, HTTP/2, TLS, compression.

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "__version__"]
