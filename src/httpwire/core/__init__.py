"""
=============================================================================
CONNECTION LAYER
=============================================================================

    SocketServer       accept loop, one thread per connection
        │
        ▼
    Connection         one client socket: recv → feed, send, close
        │
        ▼
    ConnectionSession  byte accumulator + decode/dispatch/write/trim loop

Only ConnectionSession holds protocol logic. The other two move bytes.

=============================================================================
"""

from .session import ConnectionSession, SessionState
from .connection import Connection
from .socket_server import SocketServer

__all__ = [
    "ConnectionSession",
    "SessionState",
    "Connection",
    "SocketServer",
]
