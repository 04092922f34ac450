"""
=============================================================================
HOST APPLICATION BINDING
=============================================================================

HTTPServerService is what a host application holds on to: at most one
server, started and stopped with plain method calls.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   service = HTTPServerService()                                     │
    │   service.start_server("MyPlayer", callback=on_text)                │
    │        │                                                            │
    │        └──► HTTPServer(ServerConfig(agent, port, workers)).start()  │
    │                                                                     │
    │   service.set_debug(True)      ── forwarded while started           │
    │   service.stop_server()        ── no-op when not started            │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Starting twice is a programming error (RuntimeError). Stopping is
forgiving: failures are logged and the service is left stopped.

=============================================================================
"""

import logging
import threading
from typing import Optional

from .config import DEFAULT_PORT, DEFAULT_WORKERS, ServerConfig
from .handlers import NotificationCallback
from .server import HTTPServer


logger = logging.getLogger(__name__)


class HTTPServerService:
    """
    Owns the server for an embedding application.

    Extra ServerConfig fields (host, root_dir, ...) can be passed as
    keyword arguments to the constructor and apply to every start:

        service = HTTPServerService(host="0.0.0.0", root_dir="/sdcard")
    """

    DEFAULT_PORT = DEFAULT_PORT
    DEFAULT_WORKERS = DEFAULT_WORKERS

    def __init__(self, **config_overrides):
        self._debug = bool(config_overrides.pop("debug", False))
        self._config_overrides = config_overrides
        self._server: Optional[HTTPServer] = None
        self._lock = threading.Lock()

    @property
    def is_started(self) -> bool:
        return self._server is not None

    @property
    def server(self) -> Optional[HTTPServer]:
        """The running server, None when stopped."""
        return self._server

    def start_server(
        self,
        agent: str,
        port: int = DEFAULT_PORT,
        workers: int = DEFAULT_WORKERS,
        callback: Optional[NotificationCallback] = None,
    ) -> HTTPServer:
        """
        Create and start the server.

        Args:
            agent: Server header value and start of the server-info line.
            port: Port to listen on (0 or 1024-65535).
            workers: Connections served at the same time.
            callback: Receives the path of every TEXT request.

        Returns:
            The started server.

        Raises:
            RuntimeError: If a server is already started.
            ValueError: If the configuration is invalid.
            OSError: If the port can't be bound.
        """
        with self._lock:
            if self._server is not None:
                raise RuntimeError("Server is already started")

            config = ServerConfig(
                port=port,
                workers=workers,
                server_agent=agent,
                debug=self._debug,
                **self._config_overrides,
            )
            server = HTTPServer(config, callback=callback)
            server.start()
            self._server = server

        logger.info(f"HTTP server service started server on port {server.address[1]}")
        return server

    def stop_server(self) -> None:
        """Stop the server if one is started. Never raises."""
        with self._lock:
            server, self._server = self._server, None

        if server is None:
            return

        try:
            server.stop()
            logger.info("HTTP server service stopped server")
        except Exception:
            logger.exception("Can't stop HTTP server")

    def set_debug(self, debug: bool) -> None:
        """
        Toggle debug logging.

        Applies to the running server at once and to servers started later.
        """
        self._debug = debug
        server = self._server
        if server is not None:
            server.set_debug(debug)
