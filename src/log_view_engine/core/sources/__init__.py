"""Log sources: where raw lines come from.

A source receives a ``FetchRequest`` and returns ordered raw lines.
"""

from __future__ import annotations

from .base import LogSource, line_matches
from .file import FileLogSource, read_tail_lines
from .folder import FolderLogSource, latest_log_file

__all__ = [
    "FileLogSource",
    "FolderLogSource",
    "LogSource",
    "latest_log_file",
    "line_matches",
    "read_tail_lines",
]
