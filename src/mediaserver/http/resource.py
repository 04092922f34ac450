"""
Filesystem view of a file about to be streamed.

A FileResource is built fresh for every MEDIA request from a single stat()
call and is never cached, so a file that changes between two requests gets
a new ETag and length on the next one.

=============================================================================
PATH HANDLING
=============================================================================

Without a configured root, the decoded request path IS the filesystem path:

    GET //storage/emulated/0/DCIM/IMG_1.jpg   →  /storage/emulated/0/DCIM/IMG_1.jpg
    GET /DCIM/IMG_1.jpg                       →  DCIM/IMG_1.jpg (relative to cwd)

Nothing stops "GET //etc/hosts.txt". That is the behavior embedded callers
on a trusted LAN have always relied on. Set ServerConfig.root_dir to confine
serving to one directory tree: relative paths are then joined to the root,
and anything that resolves outside it is refused with 403.

=============================================================================
"""

import logging
import os
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ResourceError
from .mime_types import get_content_type
from .status_codes import HTTPStatus


logger = logging.getLogger(__name__)


def make_etag(path: Path, last_modified: float, length: int) -> str:
    """
    Build an ETag from a file's identity and metadata.

    Hex CRC-32 of absolute path + mtime (milliseconds) + length. Cheap and
    deterministic; only meant as a client-side caching hint.

        >>> make_etag(Path("/a.jpg"), 1.5, 10) == make_etag(Path("/a.jpg"), 1.5, 10)
        True
    """
    seed = f"{path}{int(last_modified * 1000)}{length}"
    return f'"{zlib.crc32(seed.encode("utf-8")):08x}"'


@dataclass(frozen=True)
class FileResource:
    """
    A readable regular file and the metadata needed for response headers.

    Attributes:
        path: Absolute path of the file.
        length: Size in bytes.
        last_modified: Modification time, seconds since the epoch.
        mime_type: Content-Type header value.
        etag: Quoted ETag header value.
    """

    path: Path
    length: int
    last_modified: float
    mime_type: str
    etag: str

    @classmethod
    def from_path(cls, request_path: str, root_dir: Optional[str | Path] = None) -> "FileResource":
        """
        Resolve a decoded request path to a servable file.

        Args:
            request_path: URL-decoded path from the request.
            root_dir: If set, the file must live inside this directory.

        Returns:
            FileResource for the file.

        Raises:
            ResourceError: 403 if the path escapes root_dir or the file isn't
                           readable, 405 if it isn't a regular file.
        """
        path = Path(request_path)

        if root_dir is not None:
            root = Path(root_dir).resolve()
            if not path.is_absolute():
                path = root / path
            try:
                path = path.resolve()
            except (OSError, ValueError) as e:
                logger.warning(f"Cannot resolve {request_path!r}: {e}")
                raise ResourceError("resource not a file", HTTPStatus.METHOD_NOT_ALLOWED)
            try:
                path.relative_to(root)
            except ValueError:
                logger.warning(f"Path traversal attempt: {request_path}")
                raise ResourceError("resource not allowed", HTTPStatus.FORBIDDEN)

        if not path.is_file():
            logger.warning(f"Resource is not a file: {request_path}")
            raise ResourceError("resource not a file", HTTPStatus.METHOD_NOT_ALLOWED)

        if not os.access(path, os.R_OK):
            logger.warning(f"Resource is not readable: {request_path}")
            raise ResourceError("resource not readable", HTTPStatus.FORBIDDEN)

        absolute = path.absolute()
        stat = absolute.stat()

        return cls(
            path=absolute,
            length=stat.st_size,
            last_modified=stat.st_mtime,
            mime_type=get_content_type(absolute),
            etag=make_etag(absolute, stat.st_mtime, stat.st_size),
        )
