"""
=============================================================================
TCP LISTENER
=============================================================================

Owns the listening socket: create, configure, bind, listen, accept, and
hand every accepted client to a connection callback running on its own
thread.

=============================================================================
ONE THREAD PER CONNECTION
=============================================================================

    main thread                     connection threads
    ───────────                     ──────────────────
    accept() ──► Connection ──────► conn-a1b2c3d4: recv/feed/send ...
    accept() ──► Connection ──────► conn-e5f6a7b8: recv/feed/send ...
    accept() ...

A keep-alive connection may sit idle indefinitely, so connections never
wait in a shared worker queue behind one another. Threads share nothing:
each owns its socket, its session and its accumulator.

=============================================================================
"""

import socket
import signal
import logging
import threading
import time
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    Low-level TCP socket server.

    Usage:
        def handle_connection(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle_connection)  # Blocks until shutdown()
    """

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._bound_address: Optional[Tuple[str, int]] = None
        self._running = False

        # Set once the socket is listening, cleared again on shutdown
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

        # Live connections, keyed by the thread serving each one
        self._connections: dict[threading.Thread, Connection] = {}
        self._connections_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (IP, port); reflects the real port when config.port is 0."""
        if self._bound_address is not None:
            return self._bound_address
        return (self.config.host, self.config.port)

    @property
    def active_connections(self) -> int:
        with self._connections_lock:
            return len(self._connections)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind immediately after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are written whole; do not hold them back for coalescing
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up every second to check the running flag
        sock.settimeout(1.0)

        return sock

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers for graceful shutdown.

        Signal handlers can only be installed from the main thread; when the
        server runs elsewhere (tests, embedding) the caller stops it through
        shutdown() instead.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: ConnectionHandler):
        """
        Bind, listen and accept connections. BLOCKS until shutdown().

        Args:
            connection_handler: Runs on a dedicated thread for each accepted
                                connection and owns it until it returns.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._socket.listen(self.config.backlog)
        host, port = self._socket.getsockname()[:2]
        self._bound_address = (host, port)

        self._running = True
        self._setup_signals()

        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: ConnectionHandler):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue  # Poll the running flag
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            if not self._running:
                client_socket.close()
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                idle_timeout=self.config.idle_timeout,
            )

            thread = threading.Thread(
                target=self._run_connection,
                args=(connection_handler, conn),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            with self._connections_lock:
                self._connections[thread] = conn
            thread.start()

    def _run_connection(self, connection_handler: ConnectionHandler, conn: Connection):
        try:
            connection_handler(conn)
        except Exception as e:
            # Last line of defence: one connection must never take the listener down
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            conn.close()
            with self._connections_lock:
                self._connections.pop(threading.current_thread(), None)

    def shutdown(self):
        """
        Stop accepting connections. Safe to call more than once, from any
        thread, and from a signal handler: it only flips flags.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def close_connections(self):
        """Abort every live connection, including idle keep-alive ones."""
        with self._connections_lock:
            connections = list(self._connections.values())
        if connections:
            logger.info(f"Closing {len(connections)} open connection(s)")
        for conn in connections:
            conn.abort()

    def _cleanup(self):
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        # Covers shutdown by signal, where nobody else closes them
        self.close_connections()

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the socket is listening. Returns False on timeout."""
        return self._ready_event.wait(timeout)

    def join_connections(self, timeout: Optional[float] = None):
        """Wait for connection threads to finish, all within one timeout."""
        with self._connections_lock:
            threads = list(self._connections)

        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in threads:
            if deadline is None:
                thread.join()
            else:
                thread.join(max(0.0, deadline - time.monotonic()))
