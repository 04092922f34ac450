"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Just enough HTTP/1.1 to serve media to players on a local network: one GET
per connection, single byte ranges, text acknowledgments for everything
that isn't a file.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    ONE REQUEST, START TO FINISH                     │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   raw lines ──► RequestParser ──► IncomingRequest                   │
    │                                         │                           │
    │                                    classify(target)                 │
    │                    ┌────────────────────┼──────────────────┐        │
    │                    ▼                    ▼                  ▼        │
    │              SERVER_INFO              TEXT               MEDIA      │
    │              info line            callback + ACK    FileResource    │
    │                                                     resolve_range   │
    │                                                          │          │
    │                                                   ResponseWriter    │
    │                                                   .send_file()      │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

Modules:
    request.py      - Request line parsing
    classifier.py   - SERVER_INFO / TEXT / MEDIA decision and URL decoding
    ranges.py       - Range header resolution
    resource.py     - File metadata (length, MIME type, ETag)
    response.py     - Header blocks, text bodies and file streaming
    status_codes.py - The status codes this server emits
    mime_types.py   - Supported extensions and Content-Type lookup
    errors.py       - Exceptions carrying an HTTP status

=============================================================================
"""

from .classifier import Classification, RequestKind, classify, decode_path
from .errors import (
    HTTPError,
    ProtocolError,
    RangeError,
    RangeOverflowError,
    ResourceError,
    TransportError,
)
from .mime_types import SupportedFileType, get_content_type, get_mime_type
from .ranges import ByteRange, NO_RANGE, resolve_range
from .request import IncomingRequest, RequestParser, parse_request
from .resource import FileResource, make_etag
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ResponseWriter,
    format_http_date,
)
from .status_codes import HTTPStatus

__all__ = [
    # Request
    "IncomingRequest",
    "RequestParser",
    "parse_request",
    # Classification
    "Classification",
    "RequestKind",
    "classify",
    "decode_path",
    # Ranges
    "ByteRange",
    "NO_RANGE",
    "resolve_range",
    # Files
    "FileResource",
    "make_etag",
    "SupportedFileType",
    "get_mime_type",
    "get_content_type",
    # Response
    "HTTPResponse",
    "ResponseBuilder",
    "ResponseWriter",
    "format_http_date",
    "HTTPStatus",
    # Errors
    "HTTPError",
    "ProtocolError",
    "ResourceError",
    "RangeError",
    "RangeOverflowError",
    "TransportError",
]
