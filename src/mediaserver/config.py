"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Every tunable of the media server in one dataclass, validated once, before
anything binds a socket.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m mediaserver --port 9000                          │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── MEDIA_HTTP_PORT=9000 python -m mediaserver                 │
    │                                                                     │
    │   3. Constructor arguments from the embedding application           │
    │      └── HTTPServerService().start_server("agent", 9000, 3, cb)     │
    │                                                                     │
    │   4. Default values (in this dataclass)                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PORTS
=============================================================================

Ports below 1024 are refused even when the process could bind them: the
server is meant to run unprivileged inside a host application. Port 0
asks the OS for a free port (tests do this); HTTPServer.address reports
which one was picked.

=============================================================================
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


DEFAULT_PORT = 8999
DEFAULT_WORKERS = 3
MIN_PORT = 1024
MAX_PORT = 65535

LOG_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServerConfig:
    """
    Configuration for the media server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK        host, port, backlog, timeout, max_header_size
    THREADING      workers, shutdown_grace
    STREAMING      buffer_size, root_dir
    IDENTITY       server_agent, device_model, device_version
    CALLBACKS      serialize_callbacks
    LOGGING        debug, log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - this machine only
    - "0.0.0.0" - every interface, so players on the LAN can connect
    """

    port: int = DEFAULT_PORT
    """Port to listen on: 0 (OS-assigned) or 1024-65535."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    timeout: Optional[float] = None
    """
    Socket read/write timeout in seconds for client connections.
    None blocks indefinitely: a client that stops reading holds its worker
    until it disconnects.
    """

    max_header_size: int = 64 * 1024
    """Largest request header block accepted, in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # THREAD POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    workers: int = DEFAULT_WORKERS
    """
    Number of worker threads, which is also the number of connections
    served at the same time. Further connections wait in the queue.
    """

    shutdown_grace: float = 5.0
    """
    Seconds stop() waits for queued and in-flight requests before closing
    their sockets.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STREAMING
    # ─────────────────────────────────────────────────────────────────────

    buffer_size: int = 4096
    """Chunk size for file streaming and request reads, in bytes."""

    root_dir: Optional[str] = None
    """
    If set, MEDIA requests may only name files inside this directory, and
    relative paths are resolved against it. If None, request paths are used
    as given (absolute paths anywhere on the filesystem are served).
    """

    # ─────────────────────────────────────────────────────────────────────
    # IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_agent: str = "media-server"
    """Sent as the Server header and at the start of the server-info line."""

    device_model: str = field(default_factory=platform.machine)
    """Model reported in the server-info line."""

    device_version: str = field(default_factory=platform.release)
    """OS version reported in the server-info line."""

    # ─────────────────────────────────────────────────────────────────────
    # CALLBACKS
    # ─────────────────────────────────────────────────────────────────────

    serialize_callbacks: bool = False
    """
    Run the text-notification callback under a lock. Leave False when the
    callback is thread-safe itself.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    debug: bool = False
    """Log every request line and response head at DEBUG level."""

    log_level: str = "INFO"
    """Logging level used by the command line (DEBUG, INFO, WARNING, ...)."""

    log_format: str = "text"
    """Access log format: 'text' (Apache-like) or 'json'."""

    @property
    def server_info(self) -> str:
        """
        Body of the server-info response.

            >>> ServerConfig(server_agent="x", device_model="m", device_version="1").server_info
            'x (AndroidModel:m AndroidVersion:1)'
        """
        return (
            f"{self.server_agent} "
            f"(AndroidModel:{self.device_model} AndroidVersion:{self.device_version})"
        )

    @classmethod
    def from_env(cls, **overrides) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        MEDIA_HTTP_HOST       Bind address          (default: 127.0.0.1)
        MEDIA_HTTP_PORT       Port                  (default: 8999)
        MEDIA_HTTP_WORKERS    Worker threads        (default: 3)
        MEDIA_HTTP_AGENT      Server header value   (default: media-server)
        MEDIA_HTTP_ROOT       Serving root          (default: unrestricted)
        MEDIA_HTTP_DEBUG      1/true/yes/on         (default: off)
        MEDIA_HTTP_LOG_LEVEL  Logging level         (default: INFO)

        =====================================================================

        Keyword arguments override both the environment and the defaults.

        Raises:
            ValueError: If a numeric variable doesn't parse.
        """
        values = dict(
            host=os.getenv("MEDIA_HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("MEDIA_HTTP_PORT", str(DEFAULT_PORT))),
            workers=int(os.getenv("MEDIA_HTTP_WORKERS", str(DEFAULT_WORKERS))),
            server_agent=os.getenv("MEDIA_HTTP_AGENT", "media-server"),
            root_dir=os.getenv("MEDIA_HTTP_ROOT") or None,
            debug=_env_bool("MEDIA_HTTP_DEBUG"),
            log_level=os.getenv("MEDIA_HTTP_LOG_LEVEL", "INFO"),
        )
        values.update(overrides)
        return cls(**values)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPServer before anything is started, so a bad value
        fails at construction, not on the first request.

        Raises:
            ValueError: Describing the first invalid setting.
        """
        if self.port != 0 and not MIN_PORT <= self.port <= MAX_PORT:
            raise ValueError(
                f"Invalid port: {self.port}. Must be 0 or {MIN_PORT}-{MAX_PORT}."
            )

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

        if self.backlog < 1:
            raise ValueError(f"backlog must be >= 1, got {self.backlog}")

        if self.buffer_size < 512:
            raise ValueError(f"buffer_size must be >= 512, got {self.buffer_size}")

        if self.max_header_size < self.buffer_size:
            raise ValueError("max_header_size must be >= buffer_size")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 or None")

        if self.shutdown_grace < 0:
            raise ValueError("shutdown_grace must be >= 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format!r}")

        if self.root_dir is not None and not Path(self.root_dir).is_dir():
            raise ValueError(f"root_dir is not a directory: {self.root_dir}")


# =============================================================================
# MODULE SUMMARY
# =============================================================================
#
# 1. Type-safe configuration with a dataclass
# 2. MEDIA_HTTP_* environment variables for the command line
# 3. Validation before start (fail-fast)
# 4. Defaults matching the embedded service: port 8999, 3 workers
#
# =============================================================================
