"""Folder log source: follows the most recently modified log file."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..errors import LogSourceError
from ..models import FetchRequest
from .file import FileLogSource

LOG_FILE_SUFFIXES = (".log", ".txt")


def latest_log_file(folder: Path, *, suffixes: Iterable[str] = LOG_FILE_SUFFIXES) -> Path:
    """Return the newest file (by mtime) with an allowed suffix."""
    allowed = {s.lower() for s in suffixes}
    try:
        candidates = [p for p in folder.iterdir() if p.is_file() and p.suffix.lower() in allowed]
    except OSError as e:
        raise LogSourceError(f"Cannot read folder: {e}") from e

    latest: tuple[float, Path] | None = None
    for p in candidates:
        try:
            mtime = p.stat().st_mtime
        except OSError:
            continue
        if latest is None or mtime > latest[0]:
            latest = (mtime, p)

    if latest is None:
        raise LogSourceError(f"No log files found in {folder}")
    return latest[1]


@dataclass(frozen=True, slots=True)
class FolderLogSource:
    """Treat ``request.path`` as a folder and read its newest log file."""

    file_source: FileLogSource = field(default_factory=FileLogSource)
    suffixes: tuple[str, ...] = LOG_FILE_SUFFIXES

    async def fetch(self, request: FetchRequest) -> list[str]:
        path = await asyncio.to_thread(latest_log_file, Path(request.path), suffixes=self.suffixes)
        return await self.file_source.fetch_file(path, request)
