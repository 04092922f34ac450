"""
End-to-end tests against a live server on an OS-assigned port.
"""

import socket
import threading
import time
from pathlib import Path

import pytest

from conftest import raw_get, read_all
from mediaserver import HTTPServer, ServerConfig, simple_get


class TestScenarios:

    def test_server_info(self, live_server):
        status, headers, body = raw_get(live_server.address, "/")

        assert status == "HTTP/1.1 200 OK"
        assert body.strip() == b"TestAgent (AndroidModel:TestModel AndroidVersion:1.0)"
        assert headers["Connection"] == "close"

    def test_missing_file(self, live_server, recorder, tmp_path: Path):
        status, _, body = raw_get(live_server.address, f"/{tmp_path}/no/such/file.jpg")

        assert status == "HTTP/1.1 405 Method Not Allowed"
        assert body.strip() == b"resource not a file"
        assert recorder.calls == []

    def test_closed_range(self, live_server, clip: Path):
        status, headers, body = raw_get(live_server.address, f"/{clip}", ("Range: bytes=10-20",))

        assert status == "HTTP/1.1 206 Partial Content"
        assert headers["Content-Range"] == "bytes 10-20/100"
        assert headers["Content-Length"] == "11"
        assert body == bytes(range(10, 21))

    def test_open_range(self, live_server, clip: Path):
        status, headers, body = raw_get(live_server.address, f"/{clip}", ("Range: bytes=50-",))

        assert status == "HTTP/1.1 206 Partial Content"
        assert headers["Content-Range"] == "bytes 50-99/100"
        assert len(body) == 50
        assert body == bytes(range(50, 100))

    def test_invalid_range(self, live_server, clip: Path):
        status, headers, body = raw_get(live_server.address, f"/{clip}", ("Range: bytes=abc",))

        assert status == "HTTP/1.1 416 Requested Range Not Satisfiable"
        assert body.strip() == b"range supplied is invalid"
        assert "Content-Range" not in headers

    def test_text_request(self, live_server, recorder):
        status, _, body = raw_get(live_server.address, "/?foo=bar&baz=qux")

        assert status == "HTTP/1.1 200 OK"
        assert body.strip() == b"ACK"
        assert recorder.calls == ["?foo=bar&baz=qux"]


class TestStreaming:

    def test_full_transfer_is_byte_identical(self, live_server, song: Path):
        status, headers, body = raw_get(live_server.address, f"/{song}")

        assert status == "HTTP/1.1 200 OK"
        assert headers["Content-Length"] == str(song.stat().st_size)
        assert headers["Content-Type"] == "audio/mpeg"
        assert body == song.read_bytes()

    def test_range_across_buffers(self, live_server, song: Path):
        data = song.read_bytes()
        status, _, body = raw_get(live_server.address, f"/{song}", ("range: bytes=4000-8200",))

        assert status.startswith("HTTP/1.1 206")
        assert body == data[4000:8201]

    def test_empty_file(self, live_server, media_dir: Path):
        status, headers, body = raw_get(live_server.address, f"/{media_dir}/empty.jpg")

        assert status == "HTTP/1.1 200 OK"
        assert headers["Content-Length"] == "0"
        assert body == b""

    def test_encoded_path(self, live_server, media_dir: Path):
        spaced = media_dir / "My Clip.mp4"
        spaced.write_bytes(b"spaces")

        _, _, body = raw_get(live_server.address, f"/{media_dir}/My%20Clip.mp4")
        assert body == b"spaces"

    def test_etag_is_stable(self, live_server, clip: Path):
        _, first, _ = raw_get(live_server.address, f"/{clip}")
        _, second, _ = raw_get(live_server.address, f"/{clip}", ("Range: bytes=0-1",))
        assert first["ETag"] == second["ETag"]


class TestRejected:

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD"])
    def test_other_methods(self, live_server, recorder, method: str):
        status, _, body = raw_get(live_server.address, "/?x=1", method=method)

        assert status == "HTTP/1.1 405 Method Not Allowed"
        assert body.strip() == b"not allowed"
        assert recorder.calls == []

    def test_garbage(self, live_server):
        with socket.create_connection(live_server.address, timeout=5.0) as sock:
            sock.sendall(b"\x00\x01garbage\r\n\r\n")
            raw = read_all(sock)

        assert raw.startswith(b"HTTP/1.1 405 ")


class TestConcurrency:

    def test_parallel_transfers_do_not_interleave(self, live_server, song: Path, clip: Path):
        expected = {str(song): song.read_bytes(), str(clip): clip.read_bytes()}
        results = []
        lock = threading.Lock()

        def fetch(path: str):
            _, _, body = raw_get(live_server.address, f"/{path}")
            with lock:
                results.append(body == expected[path])

        threads = [
            threading.Thread(target=fetch, args=(str(song if i % 2 else clip),))
            for i in range(12)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert results == [True] * 12

    def test_callbacks_counted_once_each(self, live_server, recorder):
        threads = [
            threading.Thread(target=raw_get, args=(live_server.address, f"/?n={i}"))
            for i in range(10)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10.0)

        assert sorted(recorder.calls) == sorted(f"?n={i}" for i in range(10))


class TestClient:

    def test_simple_get_body(self, live_server):
        host, port = live_server.address
        assert simple_get(f"http://{host}:{port}/?ping") == "ACK"

    def test_simple_get_error_body(self, live_server, tmp_path: Path):
        host, port = live_server.address
        assert simple_get(f"http://{host}:{port}/{tmp_path}/gone.mp4") == "resource not a file"

    def test_simple_get_unreachable(self, free_port: int):
        assert simple_get(f"http://127.0.0.1:{free_port}/", timeout=1.0) is None

    def test_simple_get_bad_url(self):
        assert simple_get("not a url") is None


class TestLifecycle:

    def test_start_twice(self, live_server):
        with pytest.raises(RuntimeError):
            live_server.start()

    def test_stop_is_idempotent(self, config):
        server = HTTPServer(config)
        server.start()
        server.stop()
        server.stop()
        assert not server.is_running

    def test_stop_without_start(self, config):
        HTTPServer(config).stop()

    def test_invalid_config(self):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(workers=0))

    def test_bind_failure(self, config):
        first = HTTPServer(config)
        first.start()
        try:
            config_taken = ServerConfig(port=first.address[1], shutdown_grace=0.1)
            with pytest.raises(OSError):
                HTTPServer(config_taken).start()
        finally:
            first.stop()

    def test_forced_shutdown_closes_stalled_connections(self, config):
        config.workers = 1
        config.timeout = None
        config.shutdown_grace = 0.2
        server = HTTPServer(config)
        server.start()

        # Two clients that connect and never send a request: one occupies
        # the only worker, the other waits in the queue.
        stalled = [socket.create_connection(server.address, timeout=5.0) for _ in range(2)]
        try:
            for _ in range(50):
                if server.active_connections == 2:
                    break
                time.sleep(0.05)
            assert server.active_connections == 2

            server.stop()

            assert server.active_connections == 0
            for sock in stalled:
                assert read_all(sock) == b""
        finally:
            for sock in stalled:
                sock.close()

    def test_root_dir(self, config, media_dir: Path, tmp_path: Path):
        (tmp_path / "secret.jpg").write_bytes(b"secret")
        config.root_dir = str(media_dir)
        server = HTTPServer(config)
        server.start()
        try:
            status, _, body = raw_get(server.address, "/clip.mp4")
            assert status == "HTTP/1.1 200 OK"
            assert body == bytes(range(100))

            status, _, body = raw_get(server.address, "/../secret.jpg")
            assert status == "HTTP/1.1 403 Forbidden"
            assert body.strip() == b"resource not allowed"
        finally:
            server.stop()
