"""
=============================================================================
ACCESS LOG AND LOGGING SETUP
=============================================================================

One line per finished connection on the "mediaserver.access" logger:

    TEXT (Apache-like):
        192.168.1.50 - - [19/Oct/2026:14:02:11 +0000] "GET /sdcard/a.mp4" 206 1048576 12.40ms

    JSON (log aggregators):
        {"connection_id": "3f9c2a1b", "client_ip": "192.168.1.50", "method": "GET",
         "target": "/sdcard/a.mp4", "status_code": 206, "bytes_sent": 1048576,
         "duration_ms": 12.4, "timestamp": "19/Oct/2026:14:02:11 +0000"}

The access logger is an ordinary logger, so the host application routes
or silences it like any other:

    logging.getLogger("mediaserver.access").setLevel(logging.WARNING)

configure_logging() is for the command line and the blocking run() only.
An embedded server never calls it and leaves the host's logging alone.

=============================================================================
"""

import json
import logging
import time
from dataclasses import asdict, dataclass
from typing import Optional, Union


logger = logging.getLogger("mediaserver.access")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class RequestLog:
    """
    Structured access log entry.

    Attributes:
        connection_id: Short id shared with the connection's debug lines.
        client_ip: Peer address.
        method: Request method, "-" if nothing parsed.
        target: Request target as sent (still percent-encoded).
        status_code: Status of the response, 0 if none was sent.
        bytes_sent: Bytes written, headers included.
        duration_ms: Time from accept to close.
        timestamp: When the request finished.
    """

    connection_id: str
    client_ip: str
    method: str
    target: str
    status_code: int
    bytes_sent: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} /{self.target}" {self.status_code} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms'
        )


class AccessLog:
    """
    Writes RequestLog entries in the configured format.

        access_log = AccessLog(log_format="json")
        access_log.record(conn, "GET", "sdcard/a.mp4", 206)
    """

    def __init__(self, log_format: str = "text", level: int = logging.INFO):
        """
        Args:
            log_format: "text" or "json".
            level: Level the entries are logged at.
        """
        self.log_format = log_format
        self.level = level

    def record(
        self,
        conn,
        method: Optional[str],
        target: Optional[str],
        status_code: int,
    ) -> RequestLog:
        """Build the entry for a finished connection and log it."""
        entry = RequestLog(
            connection_id=conn.id,
            client_ip=conn.client_ip,
            method=method or "-",
            target=target if target is not None else "",
            status_code=int(status_code),
            bytes_sent=conn.bytes_sent,
            duration_ms=conn.age * 1000,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if logger.isEnabledFor(self.level):
            if self.log_format == "json":
                logger.log(self.level, json.dumps(entry.to_dict()))
            else:
                logger.log(self.level, entry.to_text())

        return entry


def configure_logging(level: Union[str, int] = "INFO") -> None:
    """
    Configure the root logger for command-line use.

    Args:
        level: Level name ("DEBUG", "info", ...) or logging constant.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    logging.getLogger("mediaserver").setLevel(level)
