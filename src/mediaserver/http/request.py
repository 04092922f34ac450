"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

This server speaks a deliberately tiny subset of HTTP/1.1: one GET per
connection, no body, and headers kept as raw lines. Parsing therefore has
exactly two jobs:

1. Split the header block into lines (done by Connection.read_lines()).
2. Pull the method and the request target out of the first line.

=============================================================================
THE REQUEST LINE
=============================================================================

    GET /sdcard/DCIM/Camera/IMG_1.jpg HTTP/1.1
    ─┬─ ──────────────┬────────────── ────┬───
     │                │                   │
     │                │                   └── ignored
     │                └────────────────────── target (one leading "/" dropped)
     └─────────────────────────────────────── method, must be GET

REQUEST_LINE_PATTERN: ^(\\S+) /?(\\S*).*$

    (\\S+)      Capture group 1: METHOD
    ` /?`      A space and at most ONE slash, which is dropped
    (\\S*)      Capture group 2: target, up to the next whitespace
    .*         Whatever follows (normally " HTTP/1.1")

Dropping a single slash is what lets a client address absolute paths:

    GET //storage/music/song.mp3     →  target "/storage/music/song.mp3"
    GET /?foo=bar                    →  target "?foo=bar"
    GET /                            →  target ""

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List

from .classifier import decode_path
from .errors import ProtocolError


logger = logging.getLogger(__name__)


@dataclass
class IncomingRequest:
    """
    A parsed request: method, raw target and every line that was read.

    Attributes:
        method: The HTTP method. Always "GET" once parsing succeeds.
        target: The request target exactly as sent, minus one leading "/".
                Still percent-encoded.
        lines:  All request lines in order; lines[0] is the request line.
    """

    method: str
    target: str
    lines: List[str] = field(default_factory=list)

    @property
    def path(self) -> str:
        """
        The URL-decoded target.

        Percent escapes are decoded and "+" becomes a space, so
        "My+Song%21.mp3" names the file "My Song!.mp3".
        """
        return decode_path(self.target)

    @property
    def request_line(self) -> str:
        return self.lines[0] if self.lines else ""

    @property
    def header_lines(self) -> List[str]:
        """Raw header lines ("Name: value"), in the order received."""
        return self.lines[1:]


class RequestParser:
    """
    Turns the raw lines of a request into an IncomingRequest.

    Only GET is accepted. Everything else, including a request line that
    doesn't parse at all, raises ProtocolError (405 Method Not Allowed).

        parser = RequestParser()
        request = parser.parse(["GET /a.jpg HTTP/1.1", "Range: bytes=0-"])
        request.target         # "a.jpg"
        request.header_lines   # ["Range: bytes=0-"]
    """

    ALLOWED_METHOD = "GET"

    REQUEST_LINE_PATTERN = re.compile(r"^(\S+) /?(\S*).*$")

    def __init__(self, debug: bool = False):
        """
        Args:
            debug: Log every received line at DEBUG level.
        """
        self.debug = debug

    def parse(self, lines: List[str]) -> IncomingRequest:
        """
        Parse request lines.

        Args:
            lines: Lines read from the connection, without line terminators.

        Returns:
            The parsed request.

        Raises:
            ProtocolError: If there are no lines, the request line is
                           malformed, or the method isn't GET.
        """
        if not lines:
            raise ProtocolError("empty request")

        if self.debug:
            for line in lines:
                logger.debug(f"   *** REQUEST LINE: {line}")

        request_line = lines[0].strip()
        match = self.REQUEST_LINE_PATTERN.match(request_line)
        if not match:
            logger.warning(f"Malformed request line: {request_line!r}")
            raise ProtocolError("not allowed")

        method, target = match.group(1), match.group(2)
        if method != self.ALLOWED_METHOD:
            logger.warning(f"Client made a {method} request, only GET is allowed")
            raise ProtocolError("not allowed")

        return IncomingRequest(method=method, target=target, lines=list(lines))


def parse_request(lines: List[str]) -> IncomingRequest:
    """
    Convenience function to parse request lines.

    Creates a temporary parser and parses the lines.
    For repeated parsing, create a RequestParser instance instead.
    """
    return RequestParser().parse(lines)
