"""
=============================================================================
BYTE RANGES (HTTP 206 PARTIAL CONTENT)
=============================================================================

Media players rarely download a video in one go. They ask for pieces:

    GET /sdcard/Movies/clip.mp4 HTTP/1.1
    Range: bytes=1048576-2097151

and expect a 206 response carrying exactly those bytes, plus a
Content-Range header telling them where the piece sits in the file:

    HTTP/1.1 206 Partial Content
    Content-Range: bytes 1048576-2097151/73400320
    Content-Length: 1048576

=============================================================================
WHAT IS HONORED
=============================================================================

    ┌───────────────────────┬──────────────────────────────────────────────┐
    │ Range header          │ Result                                       │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ (none)                │ present=False → 200, whole file              │
    │ bytes=10-20           │ [10, 20]                                     │
    │ bytes=50-             │ [50, size - 1]          (end absent)         │
    │ bytes=90-500          │ [90, size - 1]          (end clamped)        │
    │ bytes=500-600         │ invalid → 416           (start past EOF)     │
    │ bytes=20-10           │ invalid → 416           (end < start)        │
    │ bytes=abc             │ invalid → 416           (not a number)       │
    │ bytes=-500            │ invalid → 416           (suffix ranges)      │
    │ bytes=0-1,5-6         │ invalid → 416           (multi-range)        │
    │ items=0-10            │ invalid → 416           (no "bytes")         │
    └───────────────────────┴──────────────────────────────────────────────┘

Only the FIRST Range header is looked at. An end beyond the file is
clamped to the last byte, so Content-Length always matches what is sent.

=============================================================================
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import RangeOverflowError


logger = logging.getLogger(__name__)


# Largest value a range bound may take (signed 64-bit).
MAX_RANGE_VALUE = 2 ** 63 - 1

_DIGITS = re.compile(r"\d+", re.ASCII)


@dataclass(frozen=True)
class ByteRange:
    """
    A resolved Range header.

    Attributes:
        present: A Range header was sent at all.
        valid: The header parsed and describes a non-empty interval.
        start: First byte offset (inclusive).
        end: Last byte offset (inclusive).
        end_absent: The header had the open-ended form "bytes=N-".

    Invariant: if valid, then end >= start and size >= 1.
    """

    present: bool = False
    valid: bool = False
    start: int = 0
    end: int = 0
    end_absent: bool = False

    @property
    def size(self) -> int:
        """Number of bytes covered, end - start + 1."""
        return self.end - self.start + 1

    @property
    def satisfiable(self) -> bool:
        """True when a 206 should be sent."""
        return self.present and self.valid

    def content_range(self, file_size: int) -> str:
        """Value for the Content-Range response header."""
        return f"bytes {self.start}-{self.end}/{file_size}"


NO_RANGE = ByteRange()


def find_range_header(header_lines: Iterable[str]) -> Optional[str]:
    """
    Return the value of the first Range header, or None.

    Header names are compared case-insensitively; "RANGE: bytes=0-" counts.
    """
    for line in header_lines:
        name, sep, value = line.partition(":")
        if sep and name.strip().lower() == "range":
            return value.strip()
    return None


def _parse_bound(text: str) -> int:
    """Parse one range bound: ASCII digits only, no sign, no whitespace."""
    if not _DIGITS.fullmatch(text):
        raise ValueError(f"not a byte offset: {text!r}")
    value = int(text)
    if value > MAX_RANGE_VALUE:
        raise RangeOverflowError("range exceeds addressable size")
    return value


def parse_range_value(value: str) -> ByteRange:
    """
    Parse a Range header VALUE (the part after "Range:").

    The result is always present=True. End-absent ranges come back with
    end=0; resolve_range() fills in the real end once the file size is known.

    Raises:
        RangeOverflowError: A bound does not fit in a signed 64-bit integer.
    """
    if "bytes" not in value:
        return ByteRange(present=True, valid=False)

    marker = value.find("bytes=")
    if marker == -1:
        return ByteRange(present=True, valid=False)

    interval = value[marker + len("bytes="):].strip()
    end_absent = interval.endswith("-")

    first, dash, rest = interval.partition("-")
    try:
        if not dash:
            raise ValueError(f"missing '-' in {interval!r}")
        start = _parse_bound(first)
        end = 0 if end_absent else _parse_bound(rest)
    except ValueError as e:
        logger.warning(f"Error getting partial content range: {e}")
        return ByteRange(present=True, valid=False, end_absent=end_absent)

    return ByteRange(present=True, valid=True, start=start, end=end, end_absent=end_absent)


def resolve_range(header_lines: Iterable[str], file_size: int) -> ByteRange:
    """
    Compute the byte interval a request asks for.

    =====================================================================
    ALGORITHM
    =====================================================================

        1. Find the first Range header.        none → NO_RANGE (200)
        2. Parse "bytes=start-end".            bad  → invalid  (416)
        3. End absent or past EOF?             end = file_size - 1
        4. start past EOF or end < start?      invalid         (416)

    =====================================================================

    Args:
        header_lines: Raw "Name: value" header lines.
        file_size: Length of the file being served, in bytes.

    Returns:
        The resolved ByteRange.

    Raises:
        RangeOverflowError: A bound does not fit in a signed 64-bit integer.
    """
    value = find_range_header(header_lines)
    if value is None:
        return NO_RANGE

    parsed = parse_range_value(value)
    if not parsed.valid:
        return parsed

    start, end = parsed.start, parsed.end
    if parsed.end_absent or end >= file_size:
        end = file_size - 1

    valid = start < file_size and end >= start

    return ByteRange(
        present=True,
        valid=valid,
        start=start,
        end=end,
        end_absent=parsed.end_absent,
    )
