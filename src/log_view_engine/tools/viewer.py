"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from log_view_engine.core.config import resolve_viewer_config
from log_view_engine.core.formatting import json_fragments, split_line
from log_view_engine.core.models import FetchRequest, FilterMode, ViewLevel
from log_view_engine.core.sources import FileLogSource, FolderLogSource, LogSource
from log_view_engine.core.storage import JsonFileStore
from log_view_engine.core.timestamps import normalize_bound, to_source_iso
from log_view_engine.core.viewer import LogViewer

SourceKind = Literal["file", "folder"]

STATE_FILE_ENV = "LOG_VIEWER_STATE_FILE"
# Each source kind is one view, as in the desktop tool (one file view, one folder view).
NAMESPACES: dict[str, str] = {"file": "fetch_logs", "folder": "fetch_folder_logs"}
ALL_LEVELS = [lvl.value for lvl in ViewLevel]
ALL_MODES = [m.value for m in FilterMode]


def default_state_path() -> Path:
    """Location of the persisted view state (overridable via LOG_VIEWER_STATE_FILE)."""
    raw = os.getenv(STATE_FILE_ENV)
    if raw:
        return Path(raw).expanduser()
    return Path.home() / ".log-view-engine" / "state.json"


def _parse_level(level: str | None) -> ViewLevel:
    """Parse a level name case-insensitively ('error' -> ViewLevel.ERROR)."""
    if not level:
        return ViewLevel.ALL
    wanted = level.strip().lower()
    for lvl in ViewLevel:
        if lvl.value.lower() == wanted:
            return lvl
    valid = ", ".join(ALL_LEVELS)
    raise ValueError(f"Unknown log level '{level}'. Valid values: {valid}.")


def _parse_mode(mode: str | None) -> FilterMode:
    if not mode:
        return FilterMode.EXACT
    wanted = mode.strip().lower().replace("-", "_")
    try:
        return FilterMode(wanted)
    except ValueError as e:
        valid = ", ".join(ALL_MODES)
        raise ValueError(f"Unknown filter mode '{mode}'. Valid values: {valid}.") from e


def _source_for(kind: SourceKind) -> LogSource:
    cfg = resolve_viewer_config()
    file_source = FileLogSource(
        max_read_bytes=cfg.max_read_bytes, max_lines=cfg.max_lines, tz=cfg.source_tz
    )
    if kind == "file":
        return file_source
    if kind == "folder":
        return FolderLogSource(file_source=file_source)
    raise ValueError("kind must be 'file' or 'folder'")


def open_viewer(kind: SourceKind, *, state_file: str | Path | None = None) -> LogViewer:
    """Resume the persisted viewer for a source kind.

    Each tool call resumes the same view, so its time range is only derived
    again after the path changes or the view is reset.
    """
    store = JsonFileStore(state_file or default_state_path())
    return LogViewer(_source_for(kind), store, NAMESPACES[kind], initial_load=False)


def _bound_iso(value: str | None, which: str) -> str:
    if not value:
        return ""
    normalized = normalize_bound(value)
    if normalized is None:
        raise ValueError(f"Invalid {which}: {value!r}. Use YYYY-MM-DD HH:MM:SS[.mmm].")
    return to_source_iso(normalized, tz=resolve_viewer_config().source_tz)


def _line_to_dict(line: str) -> dict[str, Any]:
    """Split a line into display parts; unrecognized lines keep only their text."""
    parts = split_line(line)
    if parts is None:
        return {"text": line}
    return {
        "timestamp": parts.timestamp,
        "level": parts.level,
        "fragments": [{"text": f.text, "is_json": f.is_json} for f in json_fragments(parts.content)],
    }


def _view_to_dict(viewer: LogViewer, *, formatted: bool = False) -> dict[str, Any]:
    """Convert the current view into a JSON-serializable dict."""
    lines = viewer.filtered_logs
    out: dict[str, Any] = {
        "path": viewer.path,
        "count": len(lines),
        "lines": lines,
        "bookmarks": viewer.filtered_bookmarks,
        "filter": viewer.filter_text,
        "filter_mode": viewer.filter_mode.value,
        "level": viewer.level.value,
        "start_time": viewer.start_time,
        "end_time": viewer.end_time,
        "scroll_to_bottom": viewer.scroll_to_bottom,
        "error": viewer.error,
    }
    if formatted:
        out["entries"] = [_line_to_dict(line) for line in lines]
    return out


async def fetch_logs_impl(
    *,
    path: str,
    kind: SourceKind = "file",
    filter: str = "",
    level: str | None = None,
    start_date_time: str | None = None,
    end_date_time: str | None = None,
) -> dict[str, Any]:
    """Implementation for the `fetch_logs` / `fetch_folder_logs` MCP tools.

    Returns the raw source result: only the source-side filters apply
    (substring, level tag, time window).
    """
    request = FetchRequest(
        path=path,
        filter=filter,
        level=_parse_level(level),
        start_date_time=_bound_iso(start_date_time, "start_date_time"),
        end_date_time=_bound_iso(end_date_time, "end_date_time"),
    )
    lines = await _source_for(kind).fetch(request)
    return {"count": len(lines), "lines": lines}


async def view_logs_impl(
    *,
    path: str | None = None,
    kind: SourceKind = "file",
    filter: str | None = None,
    filter_mode: str | None = None,
    level: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
    reset: bool = False,
    formatted: bool = False,
    state_file: str | Path | None = None,
) -> dict[str, Any]:
    """Implementation for the `view_logs` MCP tool.

    Notes
    -----
    - Parameters left as None keep the persisted value of the view.
    - Empty strings clear a parameter (e.g. start_time="" removes the bound).
    - reset clears filter, level and time range before fetching.
    - formatted adds "entries": timestamp, level and JSON-aware fragments per line.
    """
    viewer = open_viewer(kind, state_file=state_file)

    if path is not None and path != viewer.path:
        viewer.set_path(path)
    if not viewer.path:
        raise ValueError("No log path set for this view; pass path.")

    if reset:
        await viewer.reset_to_default()
    if filter is not None:
        viewer.set_filter_text(filter)
    if filter_mode is not None:
        viewer.set_filter_mode(_parse_mode(filter_mode))
    if level is not None:
        viewer.set_level(_parse_level(level))
    if start_time is not None:
        viewer.set_start_time(start_time)
    if end_time is not None:
        viewer.set_end_time(end_time)

    if not reset or any(v is not None for v in (filter, filter_mode, level, start_time, end_time)):
        await viewer.fetch_logs()
    return _view_to_dict(viewer, formatted=formatted)


def toggle_bookmark_impl(
    *,
    index: int,
    kind: SourceKind = "file",
    state_file: str | Path | None = None,
) -> dict[str, Any]:
    """Toggle the bookmark of a line of the persisted filtered view."""
    viewer = open_viewer(kind, state_file=state_file)
    try:
        bookmarked = viewer.toggle_bookmark(index)
    except IndexError as e:
        raise ValueError(f"index {index} is outside the current view ({len(viewer.filtered_logs)} lines)") from e
    return {
        "bookmarked": bookmarked,
        "line": viewer.filtered_logs[index],
        "bookmarks": viewer.filtered_bookmarks,
    }


async def export_logs_impl(
    *,
    destination: str,
    kind: SourceKind = "file",
    state_file: str | Path | None = None,
) -> dict[str, Any]:
    """Write the persisted filtered view to a file."""
    viewer = open_viewer(kind, state_file=state_file)
    count = await viewer.export_logs(destination)
    return {"destination": destination, "count": count}


def clear_cache_impl(
    *,
    kind: SourceKind = "file",
    state_file: str | Path | None = None,
) -> dict[str, Any]:
    """Forget the persisted state of a view."""
    viewer = open_viewer(kind, state_file=state_file)
    viewer.clear_cache()
    return {"cleared": NAMESPACES[kind]}
