"""Export of the filtered view to a file."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import aiofiles


async def export_lines(destination: str | Path, lines: Iterable[str], *, encoding: str = "utf-8") -> int:
    """Write lines joined by newlines; return the number of lines written."""
    lines = list(lines)
    async with aiofiles.open(Path(destination), "w", encoding=encoding) as f:
        await f.write("\n".join(lines))
    return len(lines)
