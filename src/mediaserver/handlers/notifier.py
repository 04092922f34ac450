"""
Text notifications.

Anything that isn't a file or the server-info path is a message for the
host application. The decoded path is handed to a callback and the client
gets a plain "ACK", whatever the callback does:

    GET /?action=pause HTTP/1.1        →  callback("?action=pause")
                                       ←  200 OK ... ACK

The callback runs on the worker thread serving the connection, so several
callbacks can run at the same time. Pass serialize=True to run them one at
a time under a lock instead.
"""

import logging
import threading
from typing import Any, Callable, Optional

from ..http.response import ResponseWriter
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


NotificationCallback = Callable[[str], Any]

ACK = "ACK"


class TextNotifier:
    """
    Invokes the notification callback and acknowledges the request.

    A failing callback is logged with its traceback and otherwise ignored;
    it never changes the response.
    """

    def __init__(self, callback: Optional[NotificationCallback] = None, serialize: bool = False):
        """
        Args:
            callback: Called with the decoded path. None disables notification.
            serialize: Run callbacks one at a time.
        """
        self.callback = callback
        self._lock = threading.Lock() if serialize else None

    @property
    def serialized(self) -> bool:
        return self._lock is not None

    def notify(self, path: str) -> bool:
        """
        Deliver one notification.

        Returns:
            True if the callback ran without raising (or there is none).
        """
        if self.callback is None:
            return True

        try:
            if self._lock is not None:
                with self._lock:
                    self.callback(path)
            else:
                self.callback(path)
        except Exception:
            logger.exception(f"Notification callback failed for {path!r}")
            return False

        return True

    def handle(self, conn, writer: ResponseWriter, path: str) -> HTTPStatus:
        """
        Notify, then send 200 ACK.

        Raises:
            TransportError: If the ACK can't be written.
        """
        self.notify(path)
        writer.send_text(conn, HTTPStatus.OK, ACK)
        return HTTPStatus.OK
