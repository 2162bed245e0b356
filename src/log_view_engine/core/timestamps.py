"""Timestamp helpers.

Log lines carry a zone-less leading timestamp (``YYYY-MM-DD HH:MM:SS[.mmm]``)
written in a fixed source timezone. This module converts those tokens and
user-entered range bounds into one canonical, sortable string form
(``YYYY-MM-DDTHH:MM:SS.mmm``) and into ISO-8601 bounds for log sources.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone, tzinfo

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_TZ: tzinfo = timezone(timedelta(hours=8))

_TOKEN_FORMATS = (
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S,%f",
    "%Y-%m-%d %H:%M:%S",
)
_BOUND_FORMATS = _TOKEN_FORMATS + (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d %H:%M",
)
_LINE_TS_RE = re.compile(r"^(?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})")


def _canonical(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def _strptime_any(value: str, formats: Sequence[str]) -> datetime | None:
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def parse_timestamp(token: str) -> str | None:
    """Parse a '<date> <time>' token; return the canonical form or None."""
    cleaned = token.strip().rstrip(":")
    dt = _strptime_any(cleaned, _TOKEN_FORMATS)
    if dt is None:
        logger.warning("Invalid timestamp: %r", token)
        return None
    return _canonical(dt)


def leading_timestamp(line: str) -> str | None:
    """Parse the first two whitespace-delimited fields of a log line."""
    fields = line.split()
    return parse_timestamp(" ".join(fields[:2]))


def bounds_from_lines(lines: Sequence[str]) -> tuple[str | None, str | None]:
    """Return canonical timestamps of the first and last line."""
    if not lines:
        return None, None
    return leading_timestamp(lines[0]), leading_timestamp(lines[-1])


def normalize_bound(value: str) -> str | None:
    """Canonicalize a user-entered range bound; None when it does not parse."""
    dt = _strptime_any(value.strip(), _BOUND_FORMATS)
    if dt is None:
        logger.warning("Invalid range bound: %r", value)
        return None
    return _canonical(dt)


def to_source_iso(value: str, *, tz: tzinfo = DEFAULT_SOURCE_TZ) -> str:
    """Convert a canonical bound into ISO-8601 with the source offset ('' stays '')."""
    if not value:
        return ""
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(tz).isoformat(timespec="milliseconds")


def parse_source_datetime(value: str, *, tz: tzinfo = DEFAULT_SOURCE_TZ) -> datetime | None:
    """Parse an ISO-8601 bound received by a log source. Empty means unbounded."""
    if not value:
        return None
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def line_datetime(line: str, *, tz: tzinfo = DEFAULT_SOURCE_TZ) -> datetime | None:
    """Second-precision timestamp of a line, aware in the source timezone."""
    m = _LINE_TS_RE.match(line)
    if not m:
        return None
    try:
        dt = datetime.strptime(m.group("ts"), "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None
    return dt.replace(tzinfo=tz)


def format_date_time(value: str) -> str:
    """Render a canonical value for display ('YYYY-MM-DD HH:MM:SS.mmm')."""
    return _canonical(datetime.fromisoformat(value)).replace("T", " ")
