"""
=============================================================================
PER-CONNECTION REQUEST HANDLER
=============================================================================

RequestHandler.handle(conn) is the task every worker runs. It owns the
connection from the first read to the final close.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        handle(conn)                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   read_lines() ──► RequestParser.parse() ──► classify(target)       │
    │                                                  │                  │
    │        ┌─────────────────────────┬───────────────┴──────┐           │
    │        ▼                         ▼                      ▼           │
    │   SERVER_INFO                  TEXT                   MEDIA         │
    │   200 info line        TextNotifier.handle()   FileResource         │
    │                        callback + 200 ACK      resolve_range        │
    │                                                 ├─ no Range → 200   │
    │                                                 ├─ valid    → 206   │
    │                                                 └─ invalid  → 416   │
    │                                                                     │
    │   close connection, one access log line                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ERROR MAPPING
=============================================================================

    ┌────────────────────────────────┬───────────────────────────────────┐
    │ Failure                        │ Client sees                       │
    ├────────────────────────────────┼───────────────────────────────────┤
    │ ProtocolError                  │ 405 "not allowed" / reason        │
    │ ResourceError                  │ 403 or 405 with the reason        │
    │ invalid Range                  │ 416 "range supplied is invalid"   │
    │ RangeOverflowError             │ 500 with the reason               │
    │ TransportError, nothing sent   │ 500 "ERROR handling request: ..." │
    │ TransportError, headers sent   │ nothing more (client went away)   │
    │ any other exception            │ 500 "ERROR handling request: ..." │
    └────────────────────────────────┴───────────────────────────────────┘

Error responses are best effort: if writing them fails too, the failure
is logged at DEBUG and the connection is closed anyway.

=============================================================================
"""

import logging
from typing import Optional

from ..access import AccessLog
from ..config import ServerConfig
from ..http.classifier import RequestKind, classify
from ..http.errors import HTTPError, RangeError, TransportError
from ..http.ranges import resolve_range
from ..http.request import IncomingRequest, RequestParser
from ..http.resource import FileResource
from ..http.response import ResponseWriter
from ..http.status_codes import HTTPStatus
from .notifier import NotificationCallback, TextNotifier


logger = logging.getLogger(__name__)


RANGE_INVALID_MESSAGE = "range supplied is invalid"
ERROR_PREFIX = "ERROR handling request: "


class RequestHandler:
    """
    Serves exactly one request per connection.

    Stateless apart from configuration, so one instance is shared by all
    workers.

        handler = RequestHandler(config, callback=print)
        pool.submit(handler.handle, args=(conn,))
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        callback: Optional[NotificationCallback] = None,
        access_log: Optional[AccessLog] = None,
    ):
        """
        Args:
            config: Server configuration.
            callback: Receives the decoded path of every TEXT request.
            access_log: Where finished requests are recorded.
        """
        self.config = config or ServerConfig()
        self.parser = RequestParser(debug=self.config.debug)
        self.writer = ResponseWriter(
            server_name=self.config.server_agent,
            chunk_size=self.config.buffer_size,
            debug=self.config.debug,
        )
        self.notifier = TextNotifier(callback, serialize=self.config.serialize_callbacks)
        self.access_log = access_log or AccessLog(self.config.log_format)

    def set_debug(self, debug: bool) -> None:
        """Toggle request line and response head logging for later requests."""
        self.config.debug = debug
        self.parser.debug = debug
        self.writer.debug = debug

    def handle(self, conn) -> None:
        """
        Read, answer and close one connection. Never raises.
        """
        request: Optional[IncomingRequest] = None

        with conn:
            try:
                request = self.parser.parse(conn.read_lines())
                self.dispatch(conn, request)

            except TransportError as e:
                if conn.headers_sent:
                    logger.info(f"[{conn.id}] Client disconnected: {e.message}")
                else:
                    logger.warning(f"[{conn.id}] Transport error: {e.message}")
                    self._send_error(conn, HTTPStatus.INTERNAL_SERVER_ERROR, ERROR_PREFIX + e.message)

            except HTTPError as e:
                logger.debug(f"[{conn.id}] {e.status_code.line}: {e.message}")
                self._send_error(conn, e.status_code, e.message)

            except Exception as e:
                logger.exception(f"[{conn.id}] Error handling request: {e}")
                if not conn.headers_sent:
                    self._send_error(conn, HTTPStatus.INTERNAL_SERVER_ERROR, f"{ERROR_PREFIX}{e}")

        self.access_log.record(
            conn,
            request.method if request else None,
            request.target if request else None,
            conn.status_code,
        )

    def dispatch(self, conn, request: IncomingRequest) -> HTTPStatus:
        """
        Answer a parsed request.

        Returns:
            The status sent.

        Raises:
            HTTPError: For anything that should become an error response.
        """
        classification = classify(request.target)

        if classification.kind is RequestKind.SERVER_INFO:
            self.writer.send_text(conn, HTTPStatus.OK, self.config.server_info)
            return HTTPStatus.OK

        if classification.kind is RequestKind.TEXT:
            return self.notifier.handle(conn, self.writer, classification.path)

        return self.serve_media(conn, request, classification.path)

    def serve_media(self, conn, request: IncomingRequest, path: str) -> HTTPStatus:
        """
        Stream a file, whole or as a single byte range.

        Raises:
            ResourceError: The path can't be served.
            RangeError: A Range header was sent but is invalid.
            RangeOverflowError: A range bound is out of bounds.
        """
        resource = FileResource.from_path(path, self.config.root_dir)
        byte_range = resolve_range(request.header_lines, resource.length)

        if byte_range.present and not byte_range.valid:
            logger.warning(f"[{conn.id}] Invalid range for {resource.path}")
            raise RangeError(RANGE_INVALID_MESSAGE)

        if self.config.debug:
            logger.debug(
                f"[{conn.id}] Serving {resource.path} "
                f"({resource.length} bytes, {resource.mime_type})"
            )

        self.writer.send_file(conn, resource, byte_range)
        return HTTPStatus.PARTIAL_CONTENT if byte_range.satisfiable else HTTPStatus.OK

    def _send_error(self, conn, status: HTTPStatus, message: str) -> None:
        if conn.closed:
            return
        response = self.writer.text_response(status, message)
        conn.status_code = int(status)
        if not conn.send_response(response.to_bytes()):
            logger.debug(f"[{conn.id}] Could not deliver {status.line}")
