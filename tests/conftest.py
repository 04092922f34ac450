"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Dict, Generator, List, Tuple

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mediaserver import HTTPServer, ServerConfig
from mediaserver.core import Connection


# =============================================================================
# MEDIA FILES
# =============================================================================

@pytest.fixture
def media_dir(tmp_path: Path) -> Path:
    """Directory with a few small media files."""
    directory = tmp_path / "media"
    directory.mkdir()

    # 100 bytes: 0x00..0x63, so any slice is easy to check
    (directory / "clip.mp4").write_bytes(bytes(range(100)))

    # Several buffers' worth, not a multiple of 4096
    (directory / "song.mp3").write_bytes(bytes(i % 251 for i in range(10_000)))

    (directory / "empty.jpg").write_bytes(b"")
    (directory / "notes.txt").write_text("hello notes\n")
    (directory / "album.d").mkdir()
    return directory


@pytest.fixture
def clip(media_dir: Path) -> Path:
    return media_dir / "clip.mp4"


@pytest.fixture
def song(media_dir: Path) -> Path:
    return media_dir / "song.mp3"


# =============================================================================
# CONFIGURATION
# =============================================================================

@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        workers=3,
        timeout=5.0,
        shutdown_grace=1.0,
        server_agent="TestAgent",
        device_model="TestModel",
        device_version="1.0",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


# =============================================================================
# SOCKETPAIR CONNECTIONS (unit tests)
# =============================================================================

@pytest.fixture
def conn_pair() -> Generator[Tuple[Connection, socket.socket], None, None]:
    """
    A server-side Connection and the raw client socket at the other end.
    """
    server_sock, client_sock = socket.socketpair()
    client_sock.settimeout(5.0)
    conn = Connection(socket=server_sock, address=("127.0.0.1", 50000), timeout=5.0)

    yield conn, client_sock

    conn.abort()
    client_sock.close()


def send_request(client_sock: socket.socket, *lines: str) -> None:
    """Write request lines plus the blank line, then half-close."""
    data = "".join(line + "\r\n" for line in lines) + "\r\n"
    client_sock.sendall(data.encode("utf-8"))
    client_sock.shutdown(socket.SHUT_WR)


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes) -> Tuple[str, Dict[str, str], bytes]:
    """Split raw response bytes into status line, headers and body."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return lines[0], headers, body


# =============================================================================
# LIVE SERVER (integration tests)
# =============================================================================

class CallbackRecorder:
    """Thread-safe notification callback that remembers every call."""

    def __init__(self):
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def __call__(self, path: str) -> None:
        with self._lock:
            self.calls.append(path)


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def live_server(config: ServerConfig, recorder: CallbackRecorder) -> Generator[HTTPServer, None, None]:
    """A started server on an OS-assigned port."""
    server = HTTPServer(config, callback=recorder)
    server.start()

    yield server

    server.stop()


def raw_get(
    address: Tuple[str, int],
    target: str,
    headers: Tuple[str, ...] = (),
    method: str = "GET",
) -> Tuple[str, Dict[str, str], bytes]:
    """
    Send one request over a plain socket and read until the server closes.

    Returns:
        (status line, headers, body bytes)
    """
    with socket.create_connection(address, timeout=5.0) as sock:
        request = f"{method} {target} HTTP/1.1\r\n"
        request += "".join(f"{h}\r\n" for h in headers)
        request += "\r\n"
        sock.sendall(request.encode("utf-8"))
        raw = read_all(sock)

    return split_response(raw)
