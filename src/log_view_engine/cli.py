from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence

from log_view_engine.core.config import resolve_viewer_config
from log_view_engine.core.errors import LogViewerError
from log_view_engine.core.models import FilterMode, ViewLevel
from log_view_engine.core.sources import FileLogSource, FolderLogSource
from log_view_engine.core.storage import JsonFileStore, KeyValueStore, MemoryStore
from log_view_engine.core.timestamps import format_date_time
from log_view_engine.core.viewer import LogViewer


def _parse_level(s: str) -> ViewLevel:
    for lvl in ViewLevel:
        if lvl.value.lower() == s.strip().lower():
            return lvl
    raise argparse.ArgumentTypeError(
        "Invalid level. Allowed: " + ", ".join(lvl.value for lvl in ViewLevel)
    )


def _parse_mode(s: str) -> FilterMode:
    try:
        return FilterMode(s.strip().lower().replace("-", "_"))
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            "Invalid mode. Allowed: " + ", ".join(m.value for m in FilterMode)
        ) from e


def _build_viewer(args: argparse.Namespace) -> LogViewer:
    cfg = resolve_viewer_config()
    file_source = FileLogSource(
        max_read_bytes=cfg.max_read_bytes, max_lines=cfg.max_lines, tz=cfg.source_tz
    )
    source = FolderLogSource(file_source=file_source) if args.folder else file_source
    store: KeyValueStore = JsonFileStore(args.state) if args.state else MemoryStore()
    namespace = "fetch_folder_logs" if args.folder else "fetch_logs"
    return LogViewer(source, store, namespace, config=cfg)


def _apply_args(viewer: LogViewer, args: argparse.Namespace) -> None:
    viewer.set_path(args.log_path)
    if args.filter is not None:
        viewer.set_filter_text(args.filter)
    if args.mode is not None:
        viewer.set_filter_mode(args.mode)
    if args.level is not None:
        viewer.set_level(args.level)
    if args.since is not None:
        viewer.set_start_time(args.since)
    if args.until is not None:
        viewer.set_end_time(args.until)


def _print_lines(lines: Sequence[str], viewer: LogViewer) -> None:
    for line in lines:
        mark = "*" if viewer.is_bookmarked(line) else " "
        print(f"{mark} {line}")


def _format_bound(value: str) -> str:
    return format_date_time(value) if value else "-"


async def _run_once(viewer: LogViewer, args: argparse.Namespace) -> int:
    await viewer.fetch_logs()
    if viewer.error:
        print(viewer.error, file=sys.stderr)
        return 2

    lines = viewer.filtered_logs
    _print_lines(lines, viewer)
    print(f"\nShowing {len(lines)} of {len(viewer.raw_logs)} lines.")
    if viewer.start_time or viewer.end_time:
        print(f"Time range: {_format_bound(viewer.start_time)} .. {_format_bound(viewer.end_time)}")

    if args.export:
        await viewer.export_logs(args.export)
        print(f"Exported to {args.export}")
    return 0


async def _follow(viewer: LogViewer, args: argparse.Namespace) -> int:
    """Print the view, then only the lines appended by later refreshes."""
    shown: list[str] = []

    def on_change(lines: list[str], _scroll_to_bottom: bool) -> None:
        nonlocal shown
        if viewer.error:
            print(viewer.error, file=sys.stderr)
        start = 0
        if shown and shown[-1] in lines:
            start = len(lines) - lines[::-1].index(shown[-1])
        _print_lines(lines[start:], viewer)
        shown = list(lines)

    viewer.on_view_changed = on_change
    await viewer.fetch_logs()
    if args.until is None and viewer.end_time:
        # The derived end bound would hide every line appended after it.
        viewer.set_end_time("")
    viewer.open()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        viewer.close()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="View, filter and follow a log file or folder.")
    p.add_argument("log_path")
    p.add_argument("--folder", action="store_true", help="Treat log_path as a folder (newest *.log/*.txt)")
    p.add_argument("--filter", default=None, help="Filter text")
    p.add_argument(
        "--mode",
        type=_parse_mode,
        default=None,
        help="exact (default), case_insensitive, regex or range",
    )
    p.add_argument("--level", type=_parse_level, default=None, help="All, Debug, Info, Warning or Error")
    p.add_argument("--since", default=None, help="Start bound, YYYY-MM-DD HH:MM:SS[.mmm] (log timezone)")
    p.add_argument("--until", default=None, help="End bound, YYYY-MM-DD HH:MM:SS[.mmm] (log timezone)")
    p.add_argument("--state", default=None, help="JSON file keeping view state between runs")
    p.add_argument("--export", default=None, help="Write the filtered lines to this file")
    p.add_argument(
        "--follow",
        action="store_true",
        help="Keep refreshing and print new lines (the end bound stays open unless --until is given)",
    )
    return p


def main(argv: Sequence[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, os.getenv("LOG_VIEWER_LOG_LEVEL", "WARNING").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        viewer = _build_viewer(args)
        _apply_args(viewer, args)
        if args.follow:
            code = asyncio.run(_follow(viewer, args))
        else:
            code = asyncio.run(_run_once(viewer, args))
    except KeyboardInterrupt:
        code = 0
    except (ValueError, LogViewerError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    raise SystemExit(code)


if __name__ == "__main__":
    main()
