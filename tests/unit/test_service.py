"""
Unit tests for the host application binding.
"""

import logging

import pytest

from mediaserver import HTTPServerService, simple_get
from mediaserver.config import DEFAULT_PORT, DEFAULT_WORKERS


@pytest.fixture
def service():
    service = HTTPServerService(shutdown_grace=0.5)
    yield service
    service.stop_server()


class TestHTTPServerService:

    def test_defaults(self):
        assert HTTPServerService.DEFAULT_PORT == DEFAULT_PORT == 8999
        assert HTTPServerService.DEFAULT_WORKERS == DEFAULT_WORKERS == 3

    def test_start_and_stop(self, service):
        calls = []
        server = service.start_server("SvcAgent", port=0, workers=2, callback=calls.append)

        assert service.is_started
        assert service.server is server
        assert server.config.server_agent == "SvcAgent"
        assert server.config.workers == 2

        host, port = server.address
        assert simple_get(f"http://{host}:{port}/?hello") == "ACK"
        assert calls == ["?hello"]

        service.stop_server()
        assert not service.is_started
        assert not server.is_running

    def test_start_twice(self, service):
        service.start_server("SvcAgent", port=0)

        with pytest.raises(RuntimeError):
            service.start_server("SvcAgent", port=0)

    def test_stop_when_not_started(self, service):
        service.stop_server()
        assert not service.is_started

    def test_invalid_port(self, service):
        with pytest.raises(ValueError):
            service.start_server("SvcAgent", port=80)
        assert not service.is_started

    def test_restart(self, service):
        service.start_server("SvcAgent", port=0)
        service.stop_server()
        service.start_server("SvcAgent", port=0)
        assert service.is_started

    def test_stop_failure_is_logged(self, service, monkeypatch, caplog):
        server = service.start_server("SvcAgent", port=0)
        real_stop = server.stop

        def broken_stop():
            real_stop()
            raise RuntimeError("stuck")

        monkeypatch.setattr(server, "stop", broken_stop)

        with caplog.at_level(logging.ERROR, logger="mediaserver.service"):
            service.stop_server()

        assert not service.is_started
        assert "Can't stop HTTP server" in caplog.text

    def test_set_debug(self, service):
        service.set_debug(True)
        server = service.start_server("SvcAgent", port=0)
        assert server.config.debug is True
        assert server.handler.parser.debug is True

        service.set_debug(False)
        assert server.handler.writer.debug is False
