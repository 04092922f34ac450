"""
=============================================================================
MAIN HTTP SERVER
=============================================================================

The orchestrator that ties the socket server, the worker pool and the
request handler together.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    MEDIA SERVER ARCHITECTURE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │                        ┌─────────────────┐                          │
    │                        │   HTTPServer    │                          │
    │                        │  (Orchestrator) │                          │
    │                        └────────┬────────┘                          │
    │                                 │                                   │
    │            ┌────────────────────┼────────────────────┐              │
    │            │                    │                    │              │
    │            ▼                    ▼                    ▼              │
    │    ┌──────────────┐    ┌──────────────┐    ┌────────────────┐       │
    │    │ SocketServer │    │  ThreadPool  │    │ RequestHandler │       │
    │    │ control thr. │    │ N workers    │    │ one per server │       │
    │    └──────┬───────┘    └──────┬───────┘    └────────────────┘       │
    │           │ accept            │ run handler.handle(conn)            │
    │           ▼                   ▼                                     │
    │    ┌──────────────┐    ┌──────────────┐                             │
    │    │  Connection  │───►│ active set   │  (forced shutdown closes)   │
    │    └──────────────┘    └──────────────┘                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    start()   bind + listen, start workers, accept loop on a control thread.
              Returns immediately. Bind errors propagate.

    stop()    1. stop accepting
              2. wait up to config.shutdown_grace for queued and running
                 connections to finish
              3. still queued   → closed without being handled
                 still running  → socket closed under the worker, whose
                                  next read or write fails
              4. stop the workers
              Idempotent.

    run()     start(), then block until SIGINT/SIGTERM, then stop().
              For the command line; sets up logging and signal handlers.

=============================================================================
"""

import logging
import threading
from typing import Optional, Set, Tuple

from .access import AccessLog, configure_logging
from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .handlers import NotificationCallback, RequestHandler


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Connection-per-thread media server.

    =========================================================================
    USAGE
    =========================================================================

        # Embedded: start in the background, stop when done
        server = HTTPServer(ServerConfig(port=0), callback=on_message)
        server.start()
        host, port = server.address
        ...
        server.stop()

        # Command line: block until Ctrl+C
        HTTPServer(ServerConfig.from_env()).run()

    =========================================================================
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        callback: Optional[NotificationCallback] = None,
    ):
        """
        Args:
            config: Server configuration. Validated here.
            callback: Receives the decoded path of every TEXT request.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # ─────────────────────────────────────────────────────────────────
        # CORE COMPONENTS
        # ─────────────────────────────────────────────────────────────────

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            workers=self.config.workers,
            name_prefix="mediaserver-worker",
        )
        self.handler = RequestHandler(
            self.config,
            callback=callback,
            access_log=AccessLog(self.config.log_format),
        )

        # ─────────────────────────────────────────────────────────────────
        # RUNTIME STATE
        # ─────────────────────────────────────────────────────────────────

        self._lifecycle_lock = threading.Lock()
        self._control_thread: Optional[threading.Thread] = None
        self._running = False

        # Connections accepted and not yet closed
        self._active: Set[Connection] = set()
        self._active_lock = threading.Lock()

        self._stop_requested = threading.Event()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); the real port once started with port 0."""
        return self._socket_server.address

    @property
    def active_connections(self) -> int:
        with self._active_lock:
            return len(self._active)

    def set_debug(self, debug: bool) -> None:
        """Switch debug logging on or off while running."""
        self.handler.set_debug(debug)
        logger.info(f"Debug logging {'enabled' if debug else 'disabled'}")

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> Tuple[str, int]:
        """
        Start serving in the background.

        Returns:
            The bound (host, port).

        Raises:
            RuntimeError: If the server is already running.
            OSError: If the address can't be bound.
        """
        with self._lifecycle_lock:
            if self._running:
                raise RuntimeError("Server is already running")

            address = self._socket_server.open()
            self._thread_pool.start()

            self._stop_requested.clear()
            self._control_thread = threading.Thread(
                target=self._socket_server.serve_forever,
                args=(self._dispatch,),
                name="mediaserver-accept",
                daemon=True,
            )
            self._control_thread.start()
            self._running = True

        logger.info(
            f"Media server started on {address[0]}:{address[1]} "
            f"with {self.config.workers} workers"
        )
        return address

    def stop(self) -> None:
        """
        Stop serving. See the module docstring for the shutdown sequence.
        """
        with self._lifecycle_lock:
            if not self._running:
                return
            self._running = False

            logger.info("Shutting down server...")

            # ─────────────────────────────────────────────────────────────
            # 1. STOP ACCEPTING
            # ─────────────────────────────────────────────────────────────
            self._socket_server.shutdown()
            self._socket_server.wait_stopped(timeout=SocketServer.ACCEPT_TIMEOUT + 1.0)
            if self._control_thread is not None:
                self._control_thread.join(timeout=SocketServer.ACCEPT_TIMEOUT + 1.0)
                self._control_thread = None

            # ─────────────────────────────────────────────────────────────
            # 2. GRACE PERIOD
            # ─────────────────────────────────────────────────────────────
            if not self._thread_pool.wait_idle(self.config.shutdown_grace):
                logger.warning(
                    f"Requests still running after {self.config.shutdown_grace}s, "
                    f"forcing shutdown"
                )

                # ─────────────────────────────────────────────────────────
                # 3. FORCE
                # ─────────────────────────────────────────────────────────
                for task in self._thread_pool.cancel_pending():
                    conn = task.args[0]
                    conn.abort()
                    self._forget(conn)

                with self._active_lock:
                    running = list(self._active)
                for conn in running:
                    conn.abort()

            # ─────────────────────────────────────────────────────────────
            # 4. STOP WORKERS
            # ─────────────────────────────────────────────────────────────
            self._thread_pool.shutdown(timeout=1.0)

            with self._active_lock:
                self._active.clear()

            self._stop_requested.set()

        logger.info("Server stopped")

    def run(self) -> None:
        """
        Start, block until SIGINT/SIGTERM (or stop() from another thread),
        then shut down.
        """
        configure_logging(self.config.log_level)

        self.start()
        self._print_startup_banner()

        in_main_thread = threading.current_thread() is threading.main_thread()
        if in_main_thread:
            self._socket_server.install_signal_handlers(self._stop_requested.set)

        try:
            while not self._stop_requested.wait(0.5):
                pass
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            if in_main_thread:
                self._socket_server.restore_signal_handlers()
            self.stop()

    def _print_startup_banner(self):
        host, port = self.address
        print()
        print(f"  {self.config.server_agent} serving on http://{host}:{port}/")
        print(f"  {self.config.server_info}")
        print(f"  Workers: {self.config.workers}   Root: {self.config.root_dir or '(unrestricted)'}")
        print("  Press Ctrl+C to stop")
        print()

    # =========================================================================
    # CONNECTION DISPATCH
    # =========================================================================

    def _dispatch(self, conn: Connection):
        """
        Queue an accepted connection. Runs on the control thread.
        """
        with self._active_lock:
            self._active.add(conn)

        try:
            self._thread_pool.submit(self._process, args=(conn,))
        except RuntimeError:
            logger.debug(f"[{conn.id}] Pool stopping, dropping connection")
            self._forget(conn)
            conn.abort()

    def _process(self, conn: Connection):
        """Handle one connection. Runs on a worker thread."""
        try:
            self.handler.handle(conn)
        finally:
            self._forget(conn)

    def _forget(self, conn: Connection):
        with self._active_lock:
            self._active.discard(conn)


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Component wiring: config, socket server, pool, request handler
# 2. Background start() for embedding, blocking run() for the command line
# 3. Shutdown with a grace period, then forced socket closes
#
# =============================================================================
