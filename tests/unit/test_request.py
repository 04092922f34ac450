"""
Unit tests for HTTP request parsing.
"""

import pytest

from mediaserver.http.errors import ProtocolError
from mediaserver.http.request import (
    IncomingRequest,
    RequestParser,
    parse_request,
)
from mediaserver.http.status_codes import HTTPStatus


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self):
        request = parse_request(["GET /sdcard/clip.mp4 HTTP/1.1", "Host: phone:8999"])

        assert request.method == "GET"
        assert request.target == "sdcard/clip.mp4"
        assert request.request_line == "GET /sdcard/clip.mp4 HTTP/1.1"
        assert request.header_lines == ["Host: phone:8999"]

    def test_root_target_is_empty(self):
        assert parse_request(["GET / HTTP/1.1"]).target == ""

    def test_double_slash_keeps_absolute_path(self):
        """Only one leading slash is removed."""
        request = parse_request(["GET //abs/file.jpg HTTP/1.1"])
        assert request.target == "/abs/file.jpg"

    def test_query_target(self):
        request = parse_request(["GET /?foo=bar&baz=qux HTTP/1.1"])
        assert request.target == "?foo=bar&baz=qux"

    def test_path_is_decoded(self):
        request = parse_request(["GET /music/My%20Song+2.mp3 HTTP/1.1"])
        assert request.target == "music/My%20Song+2.mp3"
        assert request.path == "music/My Song 2.mp3"

    def test_request_line_is_stripped(self):
        request = parse_request(["  GET /a.jpg HTTP/1.1  "])
        assert request.target == "a.jpg"

    def test_http_version_is_optional(self):
        request = parse_request(["GET /a.jpg"])
        assert request.target == "a.jpg"

    def test_header_lines_keep_order(self):
        lines = ["GET /a.jpg HTTP/1.1", "Range: bytes=0-1", "Range: bytes=5-6"]
        request = parse_request(lines)
        assert request.header_lines == ["Range: bytes=0-1", "Range: bytes=5-6"]


class TestRejectedRequests:
    """Anything that isn't a parsable GET is a 405."""

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "HEAD", "get"])
    def test_other_methods(self, method: str):
        with pytest.raises(ProtocolError) as exc_info:
            parse_request([f"{method} /a.jpg HTTP/1.1"])

        assert exc_info.value.message == "not allowed"
        assert exc_info.value.status_code == HTTPStatus.METHOD_NOT_ALLOWED

    def test_empty_request(self):
        with pytest.raises(ProtocolError) as exc_info:
            parse_request([])

        assert exc_info.value.message == "empty request"
        assert exc_info.value.status_code == 405

    @pytest.mark.parametrize("line", ["GET", "GETfoo", "", "   "])
    def test_malformed_request_line(self, line: str):
        with pytest.raises(ProtocolError):
            parse_request([line])

    def test_debug_logs_lines(self, caplog):
        parser = RequestParser(debug=True)

        with caplog.at_level("DEBUG", logger="mediaserver.http.request"):
            parser.parse(["GET /a.jpg HTTP/1.1", "Range: bytes=0-"])

        assert "REQUEST LINE: Range: bytes=0-" in caplog.text


def test_incoming_request_fields():
    request = IncomingRequest(method="GET", target="x%2By", lines=["GET /x%2By"])
    assert request.path == "x+y"
    assert request.header_lines == []
