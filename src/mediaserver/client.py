"""
Minimal GET client.

Used by the tests and handy from a shell:

    >>> simple_get("http://127.0.0.1:8999/")
    'media-server (AndroidModel:x86_64 AndroidVersion:6.1.0)'

Error statuses are not exceptions here: the body of a 405 or 416 is
returned like any other, so callers can check the server's message.
"""

import logging
import urllib.error
import urllib.request
from typing import Optional


logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT = 10.0


def simple_get(url: str, timeout: float = DEFAULT_TIMEOUT) -> Optional[str]:
    """
    GET a URL and return the body as stripped text.

    Args:
        url: Full http:// URL.
        timeout: Connect and read timeout in seconds.

    Returns:
        The body, decoded as UTF-8 and stripped, whatever the status.
        None if the server couldn't be reached or the URL is malformed.
    """
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            body = response.read()
    except urllib.error.HTTPError as e:
        body = e.read()
        e.close()
    except (urllib.error.URLError, OSError, ValueError) as e:
        logger.warning(f"GET {url} failed: {e}")
        return None

    return body.decode("utf-8", errors="replace").strip()
