"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log line per request/response exchange, including exchanges that
ended in a 400 because the request could not be decoded.

    text:  127.0.0.1 - - [16/Oct/2026:10:00:00 +0000] "GET /" 200 14 0.21ms [a1b2c3d4] keep-alive
    json:  {"connection_id": "a1b2c3d4", "method": "GET", "path": "/", ...}

Records go to the "httpwire.access" logger so they can be routed or
silenced independently of the diagnostic loggers:

    logging.getLogger("httpwire.access").setLevel(logging.WARNING)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict


logger = logging.getLogger("httpwire.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """Structured entry for one exchange."""

    connection_id: str
    client_ip: str
    method: str
    path: str
    status_code: int
    content_length: int
    duration_ms: float
    keep_alive: bool
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        connection = "keep-alive" if self.keep_alive else "close"
        return (
            f'{self.client_ip or "-"} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms '
            f'[{self.connection_id}] {connection}'
        )


class AccessLog:
    """
    Emits RequestLog entries in the configured format.

    Args:
        log_format: "text" (Apache-like) or "json".
        log_level:  Level used for every entry.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def record(
        self,
        connection_id: str,
        client_ip: str,
        method: str,
        path: str,
        status_code: int,
        content_length: int,
        duration_ms: float,
        keep_alive: bool,
    ) -> RequestLog:
        entry = RequestLog(
            connection_id=connection_id,
            client_ip=client_ip,
            method=method,
            path=path,
            status_code=status_code,
            content_length=content_length,
            duration_ms=duration_ms,
            keep_alive=keep_alive,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if logger.isEnabledFor(self.log_level):
            if self.log_format == "json":
                logger.log(self.log_level, json.dumps(entry.to_dict()))
            else:
                logger.log(self.log_level, entry.to_text())

        return entry
