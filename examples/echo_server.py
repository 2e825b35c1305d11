"""
=============================================================================
EXAMPLE: ECHO SERVER
=============================================================================

A custom handler on top of httpwire. Every request is answered with a short
description of what the decoder saw, so the framing rules can be explored
with curl or a raw socket:

    curl -d 'hello' http://localhost:8080/anything
    curl -H 'Content-Type: application/json' -d '{"a": 1}' http://localhost:8080/
    printf 'GET / HTTP/1.1\r\nConnection: keep-alive\r\n\r\nGET /x HTTP/1.1\r\n\r\n' | nc localhost 8080

Run:
    python examples/echo_server.py --port 8080
=============================================================================
"""

import argparse
import json

from httpwire import HTTPServer, ServerConfig
from httpwire.http import ParsedRequest, ResponseSpec


def echo(request: ParsedRequest) -> ResponseSpec:
    body = request.body
    summary = {
        "method": request.method.value,
        "path": request.path,
        "version": request.version,
        "headers": request.headers,
        "body_type": "text" if isinstance(body, str) else "bytes",
        "body_length": len(body),
        "truncated": request.truncated,
    }
    return ResponseSpec(
        status=200,
        body=json.dumps(summary, indent=2),
        headers={"Content-Type": "application/json"},
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="httpwire echo example")
    parser.add_argument("--port", type=int, default=8080)
    args = parser.parse_args()

    HTTPServer(echo, ServerConfig(port=args.port, log_level="DEBUG")).run()
