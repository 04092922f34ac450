"""
Request classification.

Every GET is one of three things, decided from the request target alone:

    ┌──────────────┬──────────────────────────────────┬──────────────────────┐
    │ Kind         │ Target looks like                │ Handled by           │
    ├──────────────┼──────────────────────────────────┼──────────────────────┤
    │ SERVER_INFO  │ "" or ends with "/"              │ fixed identity text  │
    │ TEXT         │ "?foo=bar", "/any/thing/else"    │ TextNotifier → ACK   │
    │ MEDIA        │ "/sdcard/DCIM/IMG_1.jpg"         │ file streaming       │
    └──────────────┴──────────────────────────────────┴──────────────────────┘

Rules are evaluated in order:

    1. empty target or trailing "/"           → SERVER_INFO (not decoded)
    2. URL-decode (percent escapes, "+" → " ")
    3. decoded path starts with "?"           → TEXT
    4. extension after last "." is supported  → MEDIA
    5. anything else                          → TEXT
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional
from urllib.parse import unquote_plus

from .mime_types import SupportedFileType


class RequestKind(Enum):
    SERVER_INFO = "server_info"
    TEXT = "text"
    MEDIA = "media"


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying a request target.

    Attributes:
        kind: What to do with the request.
        path: The decoded path (the raw target for SERVER_INFO).
        file_type: The matched whitelist entry for MEDIA, else None.
    """

    kind: RequestKind
    path: str
    file_type: Optional[SupportedFileType] = None


def decode_path(target: str) -> str:
    """Percent-decode a request target, treating "+" as a space."""
    return unquote_plus(target)


def classify(target: str) -> Classification:
    """
    Classify a raw (still encoded) request target.

    Examples:
        >>> classify("").kind
        <RequestKind.SERVER_INFO: 'server_info'>
        >>> classify("?foo=bar").kind
        <RequestKind.TEXT: 'text'>
        >>> classify("/sdcard/My%20Clip.MP4").path
        '/sdcard/My Clip.MP4'
    """
    if target == "" or target.endswith("/"):
        return Classification(RequestKind.SERVER_INFO, target)

    path = decode_path(target)

    if path.startswith("?"):
        return Classification(RequestKind.TEXT, path)

    file_type = SupportedFileType.from_path(path)
    if file_type is not None:
        return Classification(RequestKind.MEDIA, path, file_type)

    return Classification(RequestKind.TEXT, path)
