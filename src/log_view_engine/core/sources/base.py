"""Log source interface and the shared server-side line predicate."""

from __future__ import annotations

import re
from datetime import datetime, tzinfo
from typing import Protocol

from ..models import FetchRequest, ViewLevel
from ..timestamps import DEFAULT_SOURCE_TZ, line_datetime

_LEVEL_RE = re.compile(r"\[(Debug|Info|Warning|Error)\]")


class LogSource(Protocol):
    """Returns the ordered raw lines matching a request; raises LogSourceError."""

    async def fetch(self, request: FetchRequest) -> list[str]:
        ...


def line_matches(
    line: str,
    *,
    filter: str,
    level: ViewLevel,
    start: datetime | None,
    end: datetime | None,
    tz: tzinfo = DEFAULT_SOURCE_TZ,
) -> bool:
    """Source-side predicate: substring, first level tag, and [start, end] window.

    The time window only applies when both bounds are set; lines without a
    leading timestamp are excluded then. The end bound is inclusive so that a
    window derived from the first and last line keeps the last line.
    """
    if filter and filter not in line:
        return False

    if level != ViewLevel.ALL:
        m = _LEVEL_RE.search(line)
        if m is None or m.group(1) != level.value:
            return False

    if start is not None and end is not None:
        ts = line_datetime(line, tz=tz)
        if ts is None:
            return False
        # Line timestamps have second precision.
        return start.replace(microsecond=0) <= ts <= end

    return True
