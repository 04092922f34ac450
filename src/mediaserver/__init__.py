"""
=============================================================================
MEDIASERVER - Embedded Media Streaming Server
=============================================================================

A small connection-per-thread HTTP server meant to live inside a host
application. It answers GET requests only, one request per connection:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      WHAT A CLIENT CAN ASK                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   GET /                      → server-info line                     │
    │                                                                     │
    │   GET /sdcard/movie.mp4      → the file, streamed                   │
    │       Range: bytes=10-20     → just those bytes (206)               │
    │                                                                     │
    │   GET /?action=pause         → callback("?action=pause"), "ACK"     │
    │                                                                     │
    │   POST / PUT / ...           → 405 not allowed                      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    mediaserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m mediaserver)
    ├── server.py            # HTTPServer: start / stop / run
    ├── service.py           # HTTPServerService: host application binding
    ├── client.py            # simple_get()
    ├── config.py            # ServerConfig dataclass
    ├── access.py            # Access log and logging setup
    ├── core/                # Sockets and threads
    │   ├── socket_server.py # Listening socket, accept loop
    │   ├── connection.py    # One client socket
    │   └── thread_pool.py   # Fixed worker pool
    ├── http/                # Protocol pieces
    │   ├── request.py       # Request line parsing
    │   ├── classifier.py    # server-info / TEXT / MEDIA
    │   ├── ranges.py        # Range header resolution
    │   ├── resource.py      # Files on disk, ETags
    │   ├── response.py      # Response heads, text bodies, streaming
    │   ├── errors.py        # Exceptions carrying a status
    │   ├── status_codes.py  # HTTPStatus enum
    │   └── mime_types.py    # Supported file types
    └── handlers/
        ├── request_handler.py  # Per-connection orchestration
        └── notifier.py         # TEXT callback + ACK

=============================================================================
QUICK START
=============================================================================

    from mediaserver import HTTPServerService

    def on_text(path):
        print("client says", path)

    service = HTTPServerService(host="0.0.0.0")
    service.start_server("MyPlayer", port=8999, workers=3, callback=on_text)
    ...
    service.stop_server()

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig, DEFAULT_PORT, DEFAULT_WORKERS
from .server import HTTPServer
from .service import HTTPServerService
from .client import simple_get

__all__ = [
    "HTTPServer",
    "HTTPServerService",
    "ServerConfig",
    "simple_get",
    "DEFAULT_PORT",
    "DEFAULT_WORKERS",
    "__version__",
]
