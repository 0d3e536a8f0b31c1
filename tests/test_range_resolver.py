import pytest

from image_server.app.exceptions import RangeNotSatisfiable
from image_server.app.services.range_resolver import (
    RangeRequest,
    ResolvedRange,
    parse_range,
    resolve_range,
    to_byte_range,
)


def test_closed_range():
    request = parse_range("bytes=0-99")
    assert request == RangeRequest(start=0, end=99)

    resolved = resolve_range(request, 1000)
    assert resolved == ResolvedRange(start=0, end=99, total_size=1000)
    assert resolved.length == 100
    assert resolved.content_range == "bytes 0-99/1000"


def test_open_ended_range_runs_to_last_byte():
    request = parse_range("bytes=500-")
    assert request == RangeRequest(start=500, end=None)

    resolved = resolve_range(request, 1000)
    assert resolved.end == 999
    assert resolved.content_range == "bytes 500-999/1000"


@pytest.mark.parametrize("header", [
    None,
    "",
    "items=0-5",
    "bytes=-500",
    "bytes=0-1,5-6",
    "bytes=abc-",
    "bytes=10-5",
])
def test_malformed_ranges_mean_no_range(header):
    assert parse_range(header) is None


def test_to_byte_range():
    closed = to_byte_range(RangeRequest(start=10, end=19))
    assert (closed.offset, closed.length) == (10, 10)

    open_ended = to_byte_range(RangeRequest(start=10))
    assert (open_ended.offset, open_ended.length) == (10, None)


def test_end_past_object_is_clamped():
    resolved = resolve_range(RangeRequest(start=900, end=5000), 1000)
    assert resolved.content_range == "bytes 900-999/1000"


def test_start_past_object_is_not_satisfiable():
    with pytest.raises(RangeNotSatisfiable) as exc_info:
        resolve_range(RangeRequest(start=1000), 1000)
    assert exc_info.value.total_size == 1000
    assert exc_info.value.status_code == 416
