"""Single-file log source reading the tail of a file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import tzinfo
from pathlib import Path

import aiofiles
import aiofiles.os

from ..errors import LogSourceError
from ..models import FetchRequest
from ..timestamps import DEFAULT_SOURCE_TZ, parse_source_datetime
from .base import line_matches

logger = logging.getLogger(__name__)

DEFAULT_MAX_READ_BYTES = 1024 * 1024
DEFAULT_MAX_LINES = 10000


async def read_tail_lines(
    path: Path,
    *,
    max_read_bytes: int,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> list[str]:
    """Return the lines of the last ``max_read_bytes`` of a file.

    When the read starts mid-file the first (partial) line is dropped.
    """
    size = (await aiofiles.os.stat(path)).st_size
    start_pos = max(0, size - max_read_bytes)
    async with aiofiles.open(path, "rb") as f:
        await f.seek(start_pos)
        data = await f.read()
    lines = data.decode(encoding, errors=decode_errors).splitlines()
    if start_pos > 0 and lines:
        lines = lines[1:]
    return lines


@dataclass(frozen=True, slots=True)
class FileLogSource:
    """Read ``request.path`` as one log file and filter it source-side."""

    max_read_bytes: int = DEFAULT_MAX_READ_BYTES
    max_lines: int = DEFAULT_MAX_LINES
    tz: tzinfo = field(default=DEFAULT_SOURCE_TZ)
    encoding: str = "utf-8"

    async def fetch(self, request: FetchRequest) -> list[str]:
        return await self.fetch_file(Path(request.path), request)

    async def fetch_file(self, path: Path, request: FetchRequest) -> list[str]:
        """Read and filter a specific file with the request's parameters."""
        try:
            lines = await read_tail_lines(
                path, max_read_bytes=self.max_read_bytes, encoding=self.encoding
            )
        except OSError as e:
            raise LogSourceError(f"Cannot open log file: {e}") from e

        try:
            start = parse_source_datetime(request.start_date_time, tz=self.tz)
            end = parse_source_datetime(request.end_date_time, tz=self.tz)
        except ValueError as e:
            raise LogSourceError(f"Invalid time: {e}") from e

        out: list[str] = []
        for line in lines:
            if not line_matches(
                line,
                filter=request.filter,
                level=request.level,
                start=start,
                end=end,
                tz=self.tz,
            ):
                continue
            out.append(line)
            if len(out) >= self.max_lines:
                break

        logger.debug("Fetched %d of %d lines from %s", len(out), len(lines), path)
        return out
