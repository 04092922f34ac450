"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The closed set of status codes this server can put on the wire, each with
the literal reason phrase that follows it in the status line.

=============================================================================
WHICH CODES, AND WHEN
=============================================================================

    ┌────────┬─────────────────────────────────────┬───────────────────────┐
    │  Code  │ Reason phrase                       │ Emitted for           │
    ├────────┼─────────────────────────────────────┼───────────────────────┤
    │  200   │ OK                                  │ full file, ACK, info  │
    │  206   │ Partial Content                     │ valid Range request   │
    │  403   │ Forbidden                           │ unreadable / outside  │
    │        │                                     │ the configured root   │
    │  405   │ Method Not Allowed                  │ non-GET, empty        │
    │        │                                     │ request, not a file   │
    │  416   │ Requested Range Not Satisfiable     │ malformed Range       │
    │  500   │ Internal Server Error               │ I/O or handler error  │
    │  501   │ Not Implemented                     │ (defined, never sent) │
    └────────┴─────────────────────────────────────┴───────────────────────┘

The phrase for 416 is the RFC 2616 wording, not the shorter RFC 7233
"Range Not Satisfiable".

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    This enum extends IntEnum, so status codes can be used as integers:

        >>> HTTPStatus.PARTIAL_CONTENT == 206
        True
        >>> HTTPStatus.PARTIAL_CONTENT.phrase
        'Partial Content'
        >>> HTTPStatus.PARTIAL_CONTENT.line
        '206 Partial Content'
    """

    OK = 200                            # Full file, ACK, server info
    PARTIAL_CONTENT = 206               # Range request fulfilled (streaming)

    FORBIDDEN = 403                     # File exists but may not be served
    METHOD_NOT_ALLOWED = 405            # Anything but GET
    RANGE_NOT_SATISFIABLE = 416         # Range header invalid

    INTERNAL_SERVER_ERROR = 500         # Unexpected failure handling a request
    NOT_IMPLEMENTED = 501               # Reserved, never emitted

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 206 Partial Content
                     ─── ───────────────
                      │   │
                      │   └── Reason phrase
                      └────── Status code
        """
        return _STATUS_PHRASES[self]

    @property
    def line(self) -> str:
        """Code and phrase as they appear after the HTTP version."""
        return f"{self.value} {self.phrase}"


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.PARTIAL_CONTENT: "Partial Content",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.RANGE_NOT_SATISFIABLE: "Requested Range Not Satisfiable",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
}
