"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the listener, the connection sessions and
logging.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m httpwire --port 3000                             │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTPWIRE_PORT=3000 python -m httpwire                      │
    │                                                                      │
    │   3. Default values (in this dataclass)                             │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from .access_log import LOG_FORMATS


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "" or value.strip().lower() == "none":
        return None
    return float(value)


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "" or value.strip().lower() == "none":
        return None
    return int(value)


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, idle_timeout

    HTTP SETTINGS
    - max_body_fallback, max_buffer_size, keep_alive_timeout, keep_alive_max

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = 8080
    """
    The port number to listen on. 0 lets the OS pick a free port; the
    bound port is then available from HTTPServer.address.
    """

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """Bytes requested per recv() call."""

    idle_timeout: Optional[float] = None
    """
    Seconds a connection may sit without receiving data before the
    listener drops it. None = wait forever, matching the session core,
    which enforces no timeout of its own.
    """

    # ─────────────────────────────────────────────────────────────────────
    # HTTP SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    max_body_fallback: int = 8192
    """Body window used when a request carries no Content-Length."""

    max_buffer_size: Optional[int] = None
    """
    Reject a request whose header section is still unterminated past this
    many bytes. None = unbounded.
    """

    keep_alive_timeout: int = 5
    """Advertised as `Keep-Alive: timeout=N` on persistent responses."""

    keep_alive_max: int = 1000
    """Advertised as `Keep-Alive: max=N` on persistent responses."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPWIRE_HOST             Server host (default: 127.0.0.1)
        HTTPWIRE_PORT             Server port (default: 8080)
        HTTPWIRE_IDLE_TIMEOUT     Idle seconds before drop (default: none)
        HTTPWIRE_MAX_BUFFER_SIZE  Header section cap in bytes (default: none)
        HTTPWIRE_LOG_LEVEL        Logging level (default: INFO)
        HTTPWIRE_LOG_FORMAT       Access log format (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTPWIRE_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTPWIRE_PORT", "8080")),
            idle_timeout=_optional_float(os.getenv("HTTPWIRE_IDLE_TIMEOUT")),
            max_buffer_size=_optional_int(os.getenv("HTTPWIRE_MAX_BUFFER_SIZE")),
            log_level=os.getenv("HTTPWIRE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTPWIRE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """Validate configuration values. Called at startup, fails fast."""
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.idle_timeout is not None and self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be > 0")

        if self.max_body_fallback < 0:
            raise ValueError("max_body_fallback must be >= 0")

        if self.max_buffer_size is not None and self.max_buffer_size < 1:
            raise ValueError("max_buffer_size must be >= 1")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {LOG_LEVELS}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}")
