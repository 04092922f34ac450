"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

One Connection = one accepted socket = exactly one request and one response.
There is no keep-alive: after the response the socket is closed, and the
client learns that the body of a text response is complete from the close.

=============================================================================
READING THE REQUEST
=============================================================================

TCP does not preserve message boundaries. A request like

    GET /sdcard/clip.mp4 HTTP/1.1\r\n
    Range: bytes=0-\r\n
    \r\n

may arrive in any number of recv() pieces. read_lines() buffers until one
of these happens:

    ┌──────────────────────────┬───────────────────────────────────────────┐
    │ Buffer contains          │ Meaning                                   │
    ├──────────────────────────┼───────────────────────────────────────────┤
    │ \r\n\r\n   or   \n\n     │ end of headers (CRLF or bare LF clients)  │
    │ recv() returned b""      │ client closed its side (EOF)              │
    │ > max_header_size bytes  │ ProtocolError, the request is refused     │
    └──────────────────────────┴───────────────────────────────────────────┘

Any request body is never read. Only GET is served, and a GET has none.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──────► READING ──────► PROCESSING ──────► WRITING
     │             │                                  │
     │             ▼                                  │
     └──────────► CLOSING ◄───────────────────────────┘
                    │
                    ▼
                  CLOSED

=============================================================================
"""

import socket
import threading
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional
import uuid

from ..http.errors import ProtocolError, TransportError


logger = logging.getLogger(__name__)


HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class ConnectionState(Enum):
    """Connection lifecycle states, used for logging and forced shutdown."""
    NEW = "new"                # Just accepted, nothing read yet
    READING = "reading"        # Reading request lines
    PROCESSING = "processing"  # Request parsed, handler is deciding
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass(eq=False)
class Connection:
    """
    A client socket for a single request/response cycle.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        bytes_sent: Total bytes written to the client so far.
        status_code: Status of the response head written, 0 until then.
        buffer_size: recv() size while reading the request.
        timeout: Socket timeout in seconds, None to block indefinitely.
        max_header_size: Largest accepted request header block, in bytes.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    bytes_sent: int = 0
    status_code: int = 0

    buffer_size: int = 4096
    timeout: Optional[float] = None
    max_header_size: int = 64 * 1024

    _close_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Client IP address, or "-" for unnamed sockets (socketpair)."""
        if isinstance(self.address, tuple) and self.address:
            return str(self.address[0])
        return "-"

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    @property
    def headers_sent(self) -> bool:
        """True once any response byte has gone out."""
        return self.bytes_sent > 0

    # =========================================================================
    # READING
    # =========================================================================

    def read_lines(self) -> List[str]:
        """
        Read the request header block and split it into lines.

        Lines may end in CRLF or LF. Reading stops at the first blank line
        or at end-of-stream; an empty list means the client sent nothing.

        Returns:
            Lines without terminators, request line first.

        Raises:
            ProtocolError: The header block exceeds max_header_size.
            TransportError: The socket read failed or timed out.
        """
        self.state = ConnectionState.READING
        buffer = b""

        while not any(t in buffer for t in HEADER_TERMINATORS):
            try:
                chunk = self.socket.recv(self.buffer_size)
            except (ConnectionResetError, BrokenPipeError):
                chunk = b""
            except socket.timeout:
                raise TransportError("request read timed out")
            except OSError as e:
                raise TransportError(f"request read failed: {e}")

            if not chunk:
                break

            buffer += chunk
            if len(buffer) > self.max_header_size:
                raise ProtocolError(f"request header too large: {len(buffer)} bytes")

        # ─────────────────────────────────────────────────────────────────
        # Split at the blank line, whichever terminator comes first
        # ─────────────────────────────────────────────────────────────────
        ends = [buffer.find(t) for t in HEADER_TERMINATORS if t in buffer]
        if ends:
            buffer = buffer[:min(ends)]

        lines = []
        for line in buffer.decode("utf-8", errors="replace").splitlines():
            if not line.strip():
                break
            lines.append(line)

        self.state = ConnectionState.PROCESSING
        return lines

    # =========================================================================
    # WRITING
    # =========================================================================

    def write(self, data: bytes) -> None:
        """
        Send all of data.

        Raises:
            TransportError: The client went away or the write timed out.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            raise TransportError(f"write failed: {e}")
        self.bytes_sent += len(data)

    def send_response(self, data: bytes) -> bool:
        """
        Send data, reporting failure instead of raising.

        Returns:
            True if send succeeded, False if the connection was lost.
        """
        try:
            self.write(data)
            return True
        except TransportError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client sees end-of-body
        2. drain whatever the client still sends (0.5s max)
        3. close(): release the file descriptor

        Safe to call more than once and from more than one thread.
        """
        with self._close_lock:
            if self.state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
                return
            self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed, {self.bytes_sent} bytes sent")

    def abort(self):
        """
        Close the socket immediately, without the graceful sequence.

        Used from another thread during forced shutdown: any recv() or
        sendall() blocked on this socket fails right away.
        """
        with self._close_lock:
            if self.state == ConnectionState.CLOSED:
                return
            self.state = ConnectionState.CLOSED

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self.socket.close()
        except OSError:
            pass
        logger.debug(f"[{self.id}] Connection aborted")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows using Connection with 'with' for automatic cleanup:

            with conn:
                lines = conn.read_lines()
                conn.write(response)
            # Connection closed here
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
