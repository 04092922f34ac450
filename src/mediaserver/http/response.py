"""
=============================================================================
HTTP RESPONSE WRITING
=============================================================================

Every response this server sends is one of two shapes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        TEXT RESPONSE                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │    HTTP/1.1 200 OK\r\n                                              │
    │    Server: media-server\r\n                                         │
    │    Content-Type: text/plain; charset=utf-8\r\n                      │
    │    Accept-Ranges: bytes\r\n                                         │
    │    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n                          │
    │    Connection: close\r\n                                            │
    │    \r\n                                                             │
    │    ACK\r\n\r\n                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Used for the server-info line, ACK and every error (403/405/416/500).
There is NO Content-Length: the client reads until the connection closes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        FILE RESPONSE                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │    HTTP/1.1 206 Partial Content\r\n                                 │
    │    Server: media-server\r\n                                         │
    │    Accept-Ranges: bytes\r\n                                         │
    │    Content-Type: video/mp4\r\n                                      │
    │    Content-Length: 11\r\n           ← range size (file size on 200) │
    │    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n                          │
    │    ETag: "1c291ca3"\r\n                                             │
    │    Content-Range: bytes 10-20/100\r\n   ← 206 only                  │
    │    Connection: close\r\n                                            │
    │    \r\n                                                             │
    │    <raw bytes, streamed in chunks>                                  │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
STREAMING
=============================================================================

Files are never loaded whole. send_file() seeks to the range start and
copies in fixed-size chunks:

    remaining = size
    while remaining > 0:
        chunk = f.read(min(remaining, chunk_size))
        if not chunk: break            ← EOF (range end past the file)
        conn.write(chunk)              ← TransportError if the client left
        remaining -= len(chunk)

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional

from .ranges import ByteRange, NO_RANGE
from .resource import FileResource
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

# Appended to every text body.
TEXT_TRAILER = "\r\n\r\n"

DEFAULT_CHUNK_SIZE = 4096


@dataclass
class HTTPResponse:
    """
    Status line, headers and an in-memory body.

    Headers are serialized in insertion order. Nothing is added
    automatically; the ResponseWriter decides exactly what goes out.
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 206 Partial Content"
        """
        return f"{self.version} {self.status.line}"

    def head_bytes(self) -> bytes:
        """Status line and headers, terminated by the blank separator line."""
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")
        return ("\r\n".join(lines) + "\r\n").encode("utf-8")

    def to_bytes(self) -> bytes:
        return self.head_bytes() + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTPResponse.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .header("Server", "media-server")
            .text("ACK")
            .close_connection()
            .build())
    """

    def __init__(self):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        return self.header("Content-Type", content_type)

    def text(self, text: str) -> "ResponseBuilder":
        """
        Set a plain text body followed by the blank-line trailer.

        Content-Type is set but Content-Length is not.
        """
        self._body = (text + TEXT_TRAILER).encode("utf-8")
        self._headers.setdefault("Content-Type", TEXT_CONTENT_TYPE)
        return self

    def close_connection(self) -> "ResponseBuilder":
        return self.header("Connection", "close")

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


class ResponseWriter:
    """
    Writes text and file responses to a Connection.

    One writer is shared by all workers; it holds configuration only, so
    concurrent use needs no locking.

    =========================================================================
    CONNECTION CONTRACT
    =========================================================================

    The connection must provide:

        conn.write(data: bytes)   sendall, raising TransportError on failure
        conn.id                   short id used in debug logs
        conn.status_code          set to the status of each head sent

    The writer never closes the connection; the caller does.

    =========================================================================
    """

    def __init__(
        self,
        server_name: str,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        debug: bool = False,
    ):
        """
        Args:
            server_name: Value of the Server header.
            chunk_size: Bytes per read/write while streaming files.
            debug: Log every response head at DEBUG level.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.server_name = server_name
        self.chunk_size = chunk_size
        self.debug = debug

    # =========================================================================
    # TEXT RESPONSES
    # =========================================================================

    def text_response(self, status: HTTPStatus, text: str) -> HTTPResponse:
        """Build (but don't send) a text response."""
        return (ResponseBuilder()
            .status(status)
            .header("Server", self.server_name)
            .content_type(TEXT_CONTENT_TYPE)
            .header("Accept-Ranges", "bytes")
            .header("Date", http_date_now())
            .close_connection()
            .text(text)
            .build())

    def send_text(self, conn, status: HTTPStatus, text: str) -> int:
        """
        Send a complete text response.

        Returns:
            Number of bytes written.

        Raises:
            TransportError: If the socket write fails.
        """
        response = self.text_response(status, text)
        self._start_response(conn, response)
        data = response.to_bytes()
        conn.write(data)
        return len(data)

    # =========================================================================
    # FILE RESPONSES
    # =========================================================================

    def file_head(self, resource: FileResource, byte_range: ByteRange = NO_RANGE) -> HTTPResponse:
        """
        Build the header block for a file response.

        A satisfiable range gives 206 with Content-Range and the range size
        as Content-Length; anything else gives 200 with the file length.
        """
        partial = byte_range.satisfiable
        length = byte_range.size if partial else resource.length

        builder = (ResponseBuilder()
            .status(HTTPStatus.PARTIAL_CONTENT if partial else HTTPStatus.OK)
            .header("Server", self.server_name)
            .header("Accept-Ranges", "bytes")
            .content_type(resource.mime_type)
            .header("Content-Length", str(length))
            .header("Date", http_date_now())
            .header("ETag", resource.etag))

        if partial:
            builder.header("Content-Range", byte_range.content_range(resource.length))

        return builder.close_connection().build()

    def send_file(self, conn, resource: FileResource, byte_range: ByteRange = NO_RANGE) -> int:
        """
        Send the header block, then stream the file (or the range of it).

        Returns:
            Number of body bytes written. Less than Content-Length only if
            the file ended early.

        Raises:
            OSError: If the file can't be opened (nothing was written yet).
            TransportError: If a socket write fails.
        """
        head = self.file_head(resource, byte_range)

        if byte_range.satisfiable:
            start, remaining = byte_range.start, byte_range.size
        else:
            start, remaining = 0, resource.length

        with open(resource.path, "rb") as f:
            self._start_response(conn, head)
            conn.write(head.head_bytes())

            if start:
                f.seek(start)

            sent = 0
            while remaining > 0:
                chunk = f.read(min(remaining, self.chunk_size))
                if not chunk:
                    break
                conn.write(chunk)
                sent += len(chunk)
                remaining -= len(chunk)

        logger.debug(f"[{conn.id}] Streamed {sent} bytes of {resource.path}")
        return sent

    def _start_response(self, conn, response: HTTPResponse) -> None:
        """Record the status on the connection and log the head in debug mode."""
        conn.status_code = int(response.status)
        if not self.debug:
            return
        logger.debug(f"[{conn.id}]  >>> {response.status_line}")
        for name, value in response.headers.items():
            logger.debug(f"[{conn.id}]  >>> {name}: {value}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 1123).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    Pure function of its argument; safe to call from any thread.
    Naive datetimes are taken to be UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)

    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def http_date_now(now: Optional[datetime] = None) -> str:
    """Current time as an HTTP-date."""
    return format_http_date(now or datetime.now(timezone.utc))
