"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: the log source commands and the persisted log views
- Resources: help text, a sample log and the view-state schema

Run locally (stdio):
    python -m log_view_engine.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP

from log_view_engine.resources.registry import register_resources
from log_view_engine.tools.viewer import (
    clear_cache_impl,
    export_logs_impl,
    fetch_logs_impl,
    toggle_bookmark_impl,
    view_logs_impl,
)

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; stdout must remain clean for the
    stdio transport.
    """
    level_name = os.getenv("LOG_VIEWER_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("log-viewer", json_response=True)

register_resources(mcp)


@mcp.tool()
async def fetch_logs(
    log_path: str,
    filter: str = "",
    level: str = "All",
    start_date_time: str | None = None,
    end_date_time: str | None = None,
) -> dict[str, Any]:
    """Read the tail of a log file and return matching raw lines.

    Parameters
    ----------
    log_path:
        Path to a local log file. Only the last 1 MiB is read.
    filter:
        Case-sensitive substring the line must contain.
    level:
        All, Debug, Info, Warning or Error (case-insensitive).
    start_date_time/end_date_time:
        Window bounds as 'YYYY-MM-DD HH:MM:SS[.mmm]' in the log's timezone.
        The window applies only when both are set.

    Returns
    -------
    dict:
        {"count": int, "lines": list[str]}
    """
    return await fetch_logs_impl(
        path=log_path,
        kind="file",
        filter=filter,
        level=level,
        start_date_time=start_date_time,
        end_date_time=end_date_time,
    )


@mcp.tool()
async def fetch_folder_logs(
    folder_path: str,
    filter: str = "",
    level: str = "All",
    start_date_time: str | None = None,
    end_date_time: str | None = None,
) -> dict[str, Any]:
    """Like fetch_logs, for the most recently modified *.log / *.txt file of a folder."""
    return await fetch_logs_impl(
        path=folder_path,
        kind="folder",
        filter=filter,
        level=level,
        start_date_time=start_date_time,
        end_date_time=end_date_time,
    )


@mcp.tool()
async def view_logs(
    path: str | None = None,
    kind: Literal["file", "folder"] = "file",
    filter: str | None = None,
    filter_mode: Literal["exact", "case_insensitive", "regex", "range"] | None = None,
    level: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
    reset: bool = False,
    formatted: bool = False,
) -> dict[str, Any]:
    """Refresh the persisted log view and return its filtered lines.

    Parameters left unset keep the values from the previous call. filter_mode
    'range' returns everything between the first and last line containing the
    filter. The result includes the positions of bookmarked lines; formatted
    adds per-line timestamp, level and JSON fragments.
    """
    return await view_logs_impl(
        path=path,
        kind=kind,
        filter=filter,
        filter_mode=filter_mode,
        level=level,
        start_time=start_time,
        end_time=end_time,
        reset=reset,
        formatted=formatted,
    )


@mcp.tool()
def toggle_bookmark(index: int, kind: Literal["file", "folder"] = "file") -> dict[str, Any]:
    """Bookmark (or un-bookmark) the line at `index` of the current filtered view."""
    return toggle_bookmark_impl(index=index, kind=kind)


@mcp.tool()
async def export_logs(destination: str, kind: Literal["file", "folder"] = "file") -> dict[str, Any]:
    """Write the current filtered view to `destination`, one line per log line."""
    return await export_logs_impl(destination=destination, kind=kind)


@mcp.tool()
def clear_cache(kind: Literal["file", "folder"] = "file") -> dict[str, Any]:
    """Forget the persisted view state, including cached lines and bookmarks."""
    return clear_cache_impl(kind=kind)


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
