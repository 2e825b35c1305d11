"""
=============================================================================
HTTP SERVER
=============================================================================

Wires the pieces together:

    ServerConfig ──► SocketServer ──► Connection ──► ConnectionSession
                                                          │
                                                RequestDecoder, handler,
                                                encode_response, AccessLog

The application supplies one handler, a plain function from ParsedRequest
to ResponseSpec. Routing, if any, lives inside that function.

    def handler(request):
        if request.path == "/":
            return ok("hello")
        return not_found()

    HTTPServer(handler, ServerConfig(port=8080)).run()

=============================================================================
"""

import logging
from typing import Optional, Tuple

from .access_log import AccessLog
from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionSession
from .core.session import Handler
from .http import RequestDecoder


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP/1.1 server with keep-alive and pipelining.

    Args:
        handler: Called for every decoded request.
        config:  Server configuration. Defaults if not provided.
    """

    def __init__(self, handler: Handler, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._handler = handler
        self._socket_server = SocketServer(self.config)

        # Stateless, so one instance serves every connection
        self._decoder = RequestDecoder(
            max_body_fallback=self.config.max_body_fallback,
            max_buffer_size=self.config.max_buffer_size,
        )
        self._access_log = AccessLog(log_format=self.config.log_format)

        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        return self._socket_server.address

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server. BLOCKS until shutdown() or SIGINT/SIGTERM.

        Args:
            host: Override config host.
            port: Override config port.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._running = True
        logger.info(f"Starting HTTP server on {self.config.host}:{self.config.port}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._running = False
            logger.info("Server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    @property
    def active_connections(self) -> int:
        return self._socket_server.active_connections

    def shutdown(self, timeout: Optional[float] = 5.0):
        """
        Stop accepting, abort open connections and wait for their threads.

        Args:
            timeout: Total seconds to wait for all connection threads.
        """
        self._socket_server.shutdown()
        self._socket_server.close_connections()
        self._socket_server.join_connections(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("httpwire").setLevel(level)

    def _handle_connection(self, conn: Connection):
        """Runs on the connection's own thread."""
        session = ConnectionSession(
            handler=self._handler,
            write=conn.send,
            decoder=self._decoder,
            keep_alive_timeout=self.config.keep_alive_timeout,
            keep_alive_max=self.config.keep_alive_max,
            connection_id=conn.id,
            client_address=conn.address,
            access_log=self._access_log,
        )

        with conn:
            conn.serve(session)

        logger.debug(f"[{conn.id}] Session ended after {session.requests_handled} requests")
