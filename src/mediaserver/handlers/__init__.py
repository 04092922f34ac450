"""
=============================================================================
HANDLERS MODULE
=============================================================================

What happens to a connection once a worker picks it up.

    request_handler.py - RequestHandler: read, classify, answer, close
    notifier.py        - TextNotifier: forward TEXT requests to a callback

=============================================================================
"""

from .notifier import ACK, NotificationCallback, TextNotifier
from .request_handler import RequestHandler

__all__ = [
    "RequestHandler",
    "TextNotifier",
    "NotificationCallback",
    "ACK",
]
