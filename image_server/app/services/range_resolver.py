import re
from dataclasses import dataclass
from typing import Optional

from image_server.app.exceptions import RangeNotSatisfiable
from image_server.app.models import ByteRange

RANGE_PATTERN = re.compile(r'^bytes=(\d+)-(\d*)$')


@dataclass(frozen=True)
class RangeRequest:
    start: int
    end: Optional[int] = None


@dataclass(frozen=True)
class ResolvedRange:
    start: int
    end: int
    total_size: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total_size}"


def parse_range(header: Optional[str]) -> Optional[RangeRequest]:
    """Parse a single ``bytes=start-end?`` range.

    Anything that does not match, including an end before the start, is
    treated as if no Range header was sent.
    """
    if not header:
        return None

    match = RANGE_PATTERN.match(header.strip())
    if not match:
        return None

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else None
    if end is not None and end < start:
        return None
    return RangeRequest(start=start, end=end)


def to_byte_range(request: RangeRequest) -> ByteRange:
    """Translate a parsed range into the offset/length form the store expects."""
    if request.end is None:
        return ByteRange(offset=request.start)
    return ByteRange(offset=request.start, length=request.end - request.start + 1)


def resolve_range(request: RangeRequest, total_size: int) -> ResolvedRange:
    """Pin a parsed range against the full size of the fetched object.

    An open end, or an end past the object, stops at the last byte. A start
    at or beyond the object size cannot be satisfied.
    """
    if request.start >= total_size:
        raise RangeNotSatisfiable(total_size)

    last_byte = total_size - 1
    end = last_byte if request.end is None else min(request.end, last_byte)
    return ResolvedRange(start=request.start, end=end, total_size=total_size)
