"""
Unit tests for Range header resolution.
"""

import pytest

from mediaserver.http.errors import RangeOverflowError
from mediaserver.http.ranges import (
    ByteRange,
    MAX_RANGE_VALUE,
    NO_RANGE,
    find_range_header,
    parse_range_value,
    resolve_range,
)


class TestFindRangeHeader:

    def test_absent(self):
        assert find_range_header(["Host: x", "Accept: */*"]) is None

    def test_case_insensitive_name(self):
        assert find_range_header(["RANGE: bytes=1-2"]) == "bytes=1-2"
        assert find_range_header(["range:bytes=1-2"]) == "bytes=1-2"

    def test_first_header_wins(self):
        assert find_range_header(["Range: bytes=0-1", "Range: bytes=5-6"]) == "bytes=0-1"

    def test_similar_names_ignored(self):
        assert find_range_header(["X-Range: bytes=0-1", "If-Range: abc"]) is None


class TestResolveRange:

    def test_no_header(self):
        result = resolve_range(["Host: x"], 100)
        assert result == NO_RANGE
        assert not result.present
        assert not result.satisfiable

    def test_closed_range(self):
        result = resolve_range(["Range: bytes=10-20"], 100)
        assert result.present and result.valid
        assert (result.start, result.end, result.size) == (10, 20, 11)
        assert result.content_range(100) == "bytes 10-20/100"

    def test_open_ended_range(self):
        result = resolve_range(["Range: bytes=50-"], 100)
        assert result.valid
        assert result.end_absent
        assert (result.start, result.end, result.size) == (50, 99, 50)

    def test_single_byte(self):
        result = resolve_range(["Range: bytes=0-0"], 100)
        assert result.valid and result.size == 1

    def test_end_beyond_file_is_clamped(self):
        result = resolve_range(["Range: bytes=90-500"], 100)
        assert result.valid
        assert (result.start, result.end, result.size) == (90, 99, 10)
        assert result.content_range(100) == "bytes 90-99/100"

    def test_start_past_end_of_file(self):
        result = resolve_range(["Range: bytes=500-600"], 100)
        assert result.present
        assert not result.valid
        assert not result.satisfiable

    def test_start_at_file_size(self):
        assert not resolve_range(["Range: bytes=100-150"], 100).valid

    def test_end_before_start(self):
        result = resolve_range(["Range: bytes=20-10"], 100)
        assert result.present
        assert not result.valid
        assert not result.satisfiable

    def test_open_range_past_end_of_file(self):
        result = resolve_range(["Range: bytes=100-"], 100)
        assert result.present and not result.valid

    def test_open_range_on_empty_file(self):
        assert not resolve_range(["Range: bytes=0-"], 0).valid

    @pytest.mark.parametrize("value", [
        "abc",
        "bytes=abc",
        "bytes=1-x",
        "bytes=-500",
        "bytes=5",
        "bytes=0-1,5-6",
        "bytes 0-1",
        "items=0-1",
        "bytes=+1-2",
    ])
    def test_invalid_values(self, value: str):
        result = resolve_range([f"Range: {value}"], 100)
        assert result.present
        assert not result.valid

    def test_overflow_raises(self):
        with pytest.raises(RangeOverflowError) as exc_info:
            resolve_range([f"Range: bytes={MAX_RANGE_VALUE + 1}-"], 100)

        assert exc_info.value.status_code == 500
        assert isinstance(exc_info.value, OverflowError)

    def test_max_value_is_accepted(self):
        result = resolve_range([f"Range: bytes=0-{MAX_RANGE_VALUE}"], 100)
        assert result.valid
        assert result.end == 99


class TestParseRangeValue:

    def test_open_ended_leaves_end_for_resolution(self):
        result = parse_range_value("bytes=5-")
        assert result == ByteRange(present=True, valid=True, start=5, end=0, end_absent=True)

    def test_whitespace_around_interval(self):
        result = parse_range_value("bytes= 3-4 ")
        assert (result.start, result.end) == (3, 4)
