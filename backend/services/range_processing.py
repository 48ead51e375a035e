"""
Range Processing Service

Decides how a binary payload is served given the client's conditional and
Range headers: full body (200), single partial range (206), unsatisfiable
range (416) or not modified (304).

Only single ranges are honored. Multi-range requests and malformed headers
fall back to the full body.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime
from typing import List, Mapping, Optional, Tuple

from constants import HeaderNames, HTTPStatus
from domain.value_objects import ByteRange

logger = logging.getLogger(__name__)

RangeSpec = Tuple[Optional[int], Optional[int]]


@dataclass(frozen=True)
class RangeDecision:
    """Outcome of evaluating a request's range headers against a payload"""

    status_code: int
    byte_range: Optional[ByteRange] = None

    @property
    def is_partial(self) -> bool:
        return self.status_code == HTTPStatus.PARTIAL_CONTENT

    @property
    def has_body(self) -> bool:
        return self.status_code in (HTTPStatus.OK, HTTPStatus.PARTIAL_CONTENT)


FULL_BODY = RangeDecision(HTTPStatus.OK)
NOT_MODIFIED = RangeDecision(HTTPStatus.NOT_MODIFIED)
NOT_SATISFIABLE = RangeDecision(HTTPStatus.RANGE_NOT_SATISFIABLE)


def to_utc_seconds(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime with whole seconds (HTTP date precision)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def format_http_date(value: datetime) -> str:
    """Format a datetime for Last-Modified, e.g. 'Wed, 21 Oct 2015 07:28:00 GMT'."""
    return format_datetime(to_utc_seconds(value), usegmt=True)


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return to_utc_seconds(parsedate_to_datetime(value))
    except (TypeError, ValueError, IndexError):
        return None


def parse_range_header(value: Optional[str]) -> Optional[List[RangeSpec]]:
    """
    Parse a Range header into (start, end) specs.

    'bytes=0-99' -> [(0, 99)], 'bytes=100-' -> [(100, None)], 'bytes=-50' -> [(None, 50)].

    Returns:
        List of specs, or None if the header is missing or malformed
    """
    if not value:
        return None

    unit, sep, spec = value.partition("=")
    if not sep or unit.strip().lower() != "bytes" or not spec.strip():
        return None

    specs: List[RangeSpec] = []
    for part in spec.split(","):
        part = part.strip()
        start_raw, dash, end_raw = part.partition("-")
        start_raw, end_raw = start_raw.strip(), end_raw.strip()

        if not dash or (not start_raw and not end_raw):
            return None
        if (start_raw and not start_raw.isdigit()) or (end_raw and not end_raw.isdigit()):
            return None

        start = int(start_raw) if start_raw else None
        end = int(end_raw) if end_raw else None
        if start is not None and end is not None and end < start:
            return None
        specs.append((start, end))

    return specs


def to_byte_range(spec: RangeSpec, total_length: int) -> Optional[ByteRange]:
    """
    Resolve a parsed spec against the payload length.

    Returns:
        The satisfiable ByteRange, or None if the spec cannot be satisfied
    """
    start, end = spec
    if total_length <= 0:
        return None

    if start is None:
        # Suffix range: the last `end` bytes
        if not end:
            return None
        return ByteRange(max(0, total_length - end), total_length - 1, total_length)

    if start >= total_length:
        return None
    end = total_length - 1 if end is None else min(end, total_length - 1)
    return ByteRange(start, end, total_length)


def _if_range_allows(if_range: Optional[str], last_modified: Optional[datetime]) -> bool:
    if not if_range:
        return True
    # No entity tags are generated, so an ETag validator never matches
    if if_range.startswith('"') or if_range.startswith('W/'):
        return False
    validator = parse_http_date(if_range)
    return validator is not None and last_modified is not None and validator == to_utc_seconds(last_modified)


def evaluate_range(
    headers: Mapping[str, str],
    total_length: Optional[int],
    last_modified: Optional[datetime] = None,
    enable_range_processing: bool = False,
    seekable: bool = True,
    method: str = "GET",
) -> RangeDecision:
    """
    Evaluate conditional and Range headers for a binary payload.

    Args:
        headers: Request headers (case-insensitive mapping, lowercase keys)
        total_length: Payload length in bytes, None if unknown
        last_modified: Payload modification time, if known
        enable_range_processing: Whether partial responses may be produced
        seekable: Whether the payload source supports random access
        method: Request method; conditional GET only applies to GET/HEAD

    Returns:
        RangeDecision describing the status and the slice to send
    """
    if last_modified is not None and method.upper() in ("GET", "HEAD"):
        since = parse_http_date(headers.get(HeaderNames.IF_MODIFIED_SINCE))
        if since is not None and to_utc_seconds(last_modified) <= since:
            return NOT_MODIFIED

    if not enable_range_processing or total_length is None:
        return FULL_BODY

    range_header = headers.get(HeaderNames.RANGE)
    if not range_header:
        return FULL_BODY

    if not seekable:
        logger.debug("Ignoring Range header for non-seekable stream")
        return FULL_BODY

    specs = parse_range_header(range_header)
    if specs is None or len(specs) != 1:
        logger.debug(f"Ignoring unsupported Range header: {range_header!r}")
        return FULL_BODY

    if not _if_range_allows(headers.get(HeaderNames.IF_RANGE), last_modified):
        return FULL_BODY

    byte_range = to_byte_range(specs[0], total_length)
    if byte_range is None:
        return NOT_SATISFIABLE

    return RangeDecision(HTTPStatus.PARTIAL_CONTENT, byte_range)
