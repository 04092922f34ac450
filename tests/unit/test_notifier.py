"""
Unit tests for text notifications.
"""

import threading
import time

from conftest import read_all, split_response
from mediaserver.handlers.notifier import ACK, TextNotifier
from mediaserver.http.response import ResponseWriter
from mediaserver.http.status_codes import HTTPStatus


class TestNotify:

    def test_callback_receives_path(self):
        calls = []
        notifier = TextNotifier(calls.append)

        assert notifier.notify("?foo=bar") is True
        assert calls == ["?foo=bar"]

    def test_no_callback(self):
        assert TextNotifier().notify("?x") is True

    def test_return_value_ignored(self):
        assert TextNotifier(lambda path: False).notify("?x") is True

    def test_failing_callback_is_logged(self, caplog):
        def explode(path):
            raise RuntimeError("sink is down")

        notifier = TextNotifier(explode)

        assert notifier.notify("?x") is False
        assert "Notification callback failed" in caplog.text
        assert "sink is down" in caplog.text

    def test_serialized_callbacks_never_overlap(self):
        active = []
        overlaps = []
        lock = threading.Lock()

        def slow(path):
            with lock:
                active.append(path)
                if len(active) > 1:
                    overlaps.append(path)
            time.sleep(0.01)
            with lock:
                active.remove(path)

        notifier = TextNotifier(slow, serialize=True)
        assert notifier.serialized

        threads = [threading.Thread(target=notifier.notify, args=(f"?{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []

    def test_not_serialized_by_default(self):
        assert not TextNotifier(print).serialized


class TestHandle:

    def test_sends_ack(self, conn_pair):
        conn, client = conn_pair
        calls = []

        status = TextNotifier(calls.append).handle(conn, ResponseWriter("TestAgent"), "?a=1")
        conn.close()

        line, headers, body = split_response(read_all(client))
        assert status == HTTPStatus.OK
        assert calls == ["?a=1"]
        assert line == "HTTP/1.1 200 OK"
        assert body == (ACK + "\r\n\r\n").encode()

    def test_ack_even_when_callback_fails(self, conn_pair):
        conn, client = conn_pair

        def explode(path):
            raise ValueError("nope")

        TextNotifier(explode).handle(conn, ResponseWriter("TestAgent"), "?a=1")
        conn.close()

        line, _, body = split_response(read_all(client))
        assert line == "HTTP/1.1 200 OK"
        assert body.strip() == b"ACK"
