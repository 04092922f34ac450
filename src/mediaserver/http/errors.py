"""
Exceptions raised while handling a single connection.

Every exception here carries the HTTP status code that should be returned
to the client, so the request handler can turn any of them into a terse
text response with one ``except`` clause:

    ProtocolError       405   unsupported method, empty / unparsable request
    ResourceError       403   unreadable file, path outside the root
                        405   path is not a regular file
    RangeError          416   malformed or unsatisfiable Range header
    RangeOverflowError  500   range values beyond a signed 64-bit integer
    TransportError      500   socket read/write failure

None of these ever escape the worker thread that raised them.
"""

from typing import Optional

from .status_codes import HTTPStatus


class HTTPError(Exception):
    """
    Base class for errors that map onto an HTTP status.

    The message is what the client sees as the response body, so keep it
    short and free of internal details.
    """

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[HTTPStatus] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = HTTPStatus(status_code)


class ProtocolError(HTTPError):
    """The request line is missing, malformed, or uses a method other than GET."""

    status_code = HTTPStatus.METHOD_NOT_ALLOWED


class ResourceError(HTTPError):
    """A MEDIA request named something that cannot be served."""

    status_code = HTTPStatus.FORBIDDEN


class RangeError(HTTPError):
    """The Range header was present but could not be satisfied."""

    status_code = HTTPStatus.RANGE_NOT_SATISFIABLE


class RangeOverflowError(HTTPError, OverflowError):
    """
    A range bound does not fit in a signed 64-bit integer.

    Raised while the range is resolved, before any header is written, so
    the client gets a clean 500 instead of a truncated 206.
    """

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


class TransportError(HTTPError):
    """Reading from or writing to the client socket failed."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
