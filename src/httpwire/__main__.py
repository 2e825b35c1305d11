"""
=============================================================================
COMMAND-LINE INTERFACE
=============================================================================

    python -m httpwire                         # 127.0.0.1:8080
    python -m httpwire --port 3000
    python -m httpwire --host 0.0.0.0 --log-format json
    python -m httpwire --idle-timeout 30

Then:

    curl http://localhost:8080/
    curl -X POST -d "hello world" http://localhost:8080/
    curl http://localhost:8080/nonexistent
    curl -H "Connection: keep-alive" http://localhost:8080/

Options not given on the command line fall back to HTTPWIRE_* environment
variables (see ServerConfig.from_env), then to defaults.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .config import ServerConfig, LOG_LEVELS
from .access_log import LOG_FORMATS
from .handlers import demo_handler
from .server import HTTPServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpwire",
        description="HTTP/1.1 server with keep-alive and pipelining, built on raw sockets",
    )

    parser.add_argument("--host", "-H", help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument(
        "--idle-timeout",
        type=float,
        help="Drop connections idle for this many seconds (default: never)",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=LOG_LEVELS,
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        help="Access log format (default: text)",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpwire {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then explicit command-line options on top."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.idle_timeout is not None:
        config.idle_timeout = args.idle_timeout
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(demo_handler, config)
    except ValueError as e:
        print(f"httpwire: configuration error: {e}", file=sys.stderr)
        return 2

    server.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
