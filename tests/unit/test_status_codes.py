"""
Unit tests for status codes and the exceptions that carry them.
"""

import pytest

from mediaserver.http.errors import (
    HTTPError,
    ProtocolError,
    RangeError,
    RangeOverflowError,
    ResourceError,
    TransportError,
)
from mediaserver.http.status_codes import HTTPStatus


class TestHTTPStatus:

    @pytest.mark.parametrize("status,line", [
        (HTTPStatus.OK, "200 OK"),
        (HTTPStatus.PARTIAL_CONTENT, "206 Partial Content"),
        (HTTPStatus.FORBIDDEN, "403 Forbidden"),
        (HTTPStatus.METHOD_NOT_ALLOWED, "405 Method Not Allowed"),
        (HTTPStatus.RANGE_NOT_SATISFIABLE, "416 Requested Range Not Satisfiable"),
        (HTTPStatus.INTERNAL_SERVER_ERROR, "500 Internal Server Error"),
        (HTTPStatus.NOT_IMPLEMENTED, "501 Not Implemented"),
    ])
    def test_lines(self, status: HTTPStatus, line: str):
        assert status.line == line

    def test_closed_set(self):
        assert sorted(int(s) for s in HTTPStatus) == [200, 206, 403, 405, 416, 500, 501]

    def test_int_behaviour(self):
        assert HTTPStatus.PARTIAL_CONTENT == 206
        assert HTTPStatus(416) is HTTPStatus.RANGE_NOT_SATISFIABLE
        assert HTTPStatus.FORBIDDEN >= 400


class TestErrors:

    @pytest.mark.parametrize("error_class,status", [
        (ProtocolError, 405),
        (ResourceError, 403),
        (RangeError, 416),
        (RangeOverflowError, 500),
        (TransportError, 500),
    ])
    def test_default_status(self, error_class, status: int):
        error = error_class("boom")
        assert isinstance(error, HTTPError)
        assert error.status_code == status
        assert error.message == "boom"
        assert str(error) == "boom"

    def test_status_override(self):
        error = ResourceError("resource not a file", 405)
        assert error.status_code is HTTPStatus.METHOD_NOT_ALLOWED

    def test_override_does_not_leak_to_class(self):
        ResourceError("x", HTTPStatus.METHOD_NOT_ALLOWED)
        assert ResourceError("y").status_code == HTTPStatus.FORBIDDEN
