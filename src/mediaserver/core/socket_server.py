"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket and the accept loop. It knows nothing about HTTP:
every accepted socket is wrapped in a Connection and handed to a callback.

    ┌───────────────────────────────────────────────────────────────────┐
    │                      SocketServer Lifecycle                       │
    ├───────────────────────────────────────────────────────────────────┤
    │                                                                   │
    │    open()              socket() → setsockopt() → bind() → listen()│
    │      │                 returns the bound (host, port)             │
    │      ▼                                                            │
    │    serve_forever(cb)   accept loop, runs on the control thread    │
    │      │                   accept() → Connection → cb(conn)         │
    │      │                 1s accept timeout so shutdown is noticed   │
    │      ▼                                                            │
    │    shutdown()          flag the loop to exit (any thread)         │
    │      │                                                            │
    │      ▼                                                            │
    │    (loop exits)        listening socket closed, stopped event set │
    │                                                                   │
    └───────────────────────────────────────────────────────────────────┘

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR:  restart on the same port without waiting out TIME_WAIT.
TCP_NODELAY:   send response heads immediately instead of batching them
               with the first chunk of a file (Nagle's algorithm off).

=============================================================================
SIGNALS
=============================================================================

install_signal_handlers() is only used by the blocking HTTPServer.run().
A server embedded in a host application never touches the host's signal
handlers. Handlers are saved and restored so the host sees no change.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Listening socket plus accept loop.

    Usage:
        server = SocketServer(config)
        host, port = server.open()
        threading.Thread(target=server.serve_forever, args=(on_connection,)).start()
        ...
        server.shutdown()
        server.wait_stopped(timeout=2)
    """

    ACCEPT_TIMEOUT = 1.0

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration (host, port, backlog, timeouts).

        The socket is created in open(), not here.
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._address: Optional[Tuple[str, int]] = None
        self._running = False

        # Set once the accept loop has exited and the socket is closed
        self._stopped_event = threading.Event()
        self._stopped_event.set()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        The bound (host, port).

        After open() this is the real address, so a configured port of 0
        reports the port the OS picked.
        """
        if self._address is not None:
            return self._address
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() returns at least once a second so the loop can see shutdown
        sock.settimeout(self.ACCEPT_TIMEOUT)
        return sock

    def open(self) -> Tuple[str, int]:
        """
        Create, bind and listen.

        Returns:
            The bound (host, port).

        Raises:
            OSError: If the address can't be bound (logged first).
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, self.config.port))
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        sock.listen(self.config.backlog)

        self._socket = sock
        self._address = sock.getsockname()[:2]
        self._running = True
        self._stopped_event.clear()

        logger.info(f"Server listening on {self._address[0]}:{self._address[1]}")
        return self._address

    def serve_forever(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        Blocks. open() must have been called first.

        Args:
            connection_handler: Receives each accepted Connection. It must
                                not block; HTTPServer submits to its pool.
        """
        if self._socket is None:
            raise RuntimeError("serve_forever() called before open()")

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        ┌─────────────────────────────────────────────────────────────────┐
        │   while running:                                                │
        │       accept()           ── timeout → check flag, loop again    │
        │       Connection(...)    ── socket options from config          │
        │       handler(conn)      ── HTTPServer queues it on the pool    │
        │   OSError while running  ── logged, loop ends                   │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_header_size=self.config.max_header_size,
            )

            try:
                connection_handler(conn)
            except Exception:
                logger.exception(f"[{conn.id}] Failed to dispatch connection")
                conn.abort()

    def shutdown(self):
        """
        Stop accepting. Safe to call from any thread, and more than once.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        self._running = False
        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._stopped_event.set()
        logger.info("Socket server stopped")

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the accept loop to exit.

        Returns:
            True if it exited, False on timeout.
        """
        return self._stopped_event.wait(timeout)

    # =========================================================================
    # SIGNAL HANDLING (blocking run() only)
    # =========================================================================

    def install_signal_handlers(self, on_signal: Callable[[], None]):
        """
        Route SIGINT (Ctrl+C) and SIGTERM (kill, systemd) to on_signal.

        Must be called from the main thread.
        """
        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            on_signal()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def restore_signal_handlers(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()
