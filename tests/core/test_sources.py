from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from log_view_engine.core.errors import LogSourceError
from log_view_engine.core.models import FetchRequest, ViewLevel
from log_view_engine.core.sources import (
    FileLogSource,
    FolderLogSource,
    latest_log_file,
    line_matches,
    read_tail_lines,
)
from log_view_engine.core.timestamps import DEFAULT_SOURCE_TZ


@pytest.mark.asyncio
async def test_file_source_returns_all_lines_in_order(tmp_path: Path, write_view_log) -> None:
    path = tmp_path / "app.log"
    write_view_log(path)

    lines = await FileLogSource().fetch(FetchRequest(path=str(path)))

    assert len(lines) == 5
    assert lines[0].endswith("service started")
    assert lines[-1].endswith("shutting down")


@pytest.mark.asyncio
async def test_file_source_applies_filter_and_level(tmp_path: Path, write_view_log) -> None:
    path = tmp_path / "app.log"
    write_view_log(path)
    source = FileLogSource()

    by_text = await source.fetch(FetchRequest(path=str(path), filter="request"))
    assert by_text == ["2024-01-01 10:00:03.010 [Warning]: retrying request id=abc123"]

    by_level = await source.fetch(FetchRequest(path=str(path), level=ViewLevel.DEBUG))
    assert by_level == ['2024-01-01 10:00:01.250 [Debug]: config loaded {"workers": 4}']


@pytest.mark.asyncio
async def test_file_source_time_window_is_inclusive(tmp_path: Path, write_view_log) -> None:
    path = tmp_path / "app.log"
    write_view_log(path)

    lines = await FileLogSource().fetch(
        FetchRequest(
            path=str(path),
            start_date_time="2024-01-01T10:00:01.250+08:00",
            end_date_time="2024-01-01T10:00:04.000+08:00",
        )
    )

    assert [line[11:23] for line in lines] == ["10:00:01.250", "10:00:03.010", "10:00:04.480"]


@pytest.mark.asyncio
async def test_file_source_converts_other_offsets(tmp_path: Path, write_view_log) -> None:
    path = tmp_path / "app.log"
    write_view_log(path)

    lines = await FileLogSource().fetch(
        FetchRequest(
            path=str(path),
            start_date_time="2024-01-01T02:00:04Z",
            end_date_time="2024-01-01T02:00:05Z",
        )
    )

    assert len(lines) == 2
    assert "[Error]" in lines[0]


@pytest.mark.asyncio
async def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(LogSourceError, match="Cannot open log file"):
        await FileLogSource().fetch(FetchRequest(path=str(tmp_path / "nope.log")))


@pytest.mark.asyncio
async def test_invalid_bound_raises(tmp_path: Path, write_view_log) -> None:
    path = tmp_path / "app.log"
    write_view_log(path)
    with pytest.raises(LogSourceError, match="Invalid time"):
        await FileLogSource().fetch(
            FetchRequest(path=str(path), start_date_time="yesterday", end_date_time="today")
        )


@pytest.mark.asyncio
async def test_tail_read_drops_partial_first_line(tmp_path: Path) -> None:
    path = tmp_path / "big.log"
    path.write_text("first line is long\nsecond\nthird\n", encoding="utf-8")

    lines = await read_tail_lines(path, max_read_bytes=len("cond\nthird\n"))
    assert lines == ["third"]

    whole = await read_tail_lines(path, max_read_bytes=1024)
    assert whole == ["first line is long", "second", "third"]


@pytest.mark.asyncio
async def test_max_lines_caps_output(tmp_path: Path, write_view_log) -> None:
    path = tmp_path / "app.log"
    write_view_log(path)
    lines = await FileLogSource(max_lines=2).fetch(FetchRequest(path=str(path)))
    assert len(lines) == 2


def _touch(path: Path, text: str, mtime: float) -> None:
    path.write_text(text, encoding="utf-8")
    os.utime(path, (mtime, mtime))


def test_latest_log_file_picks_newest_allowed_suffix(tmp_path: Path) -> None:
    _touch(tmp_path / "old.log", "old\n", 1_000)
    _touch(tmp_path / "new.txt", "new\n", 2_000)
    _touch(tmp_path / "newest.json", "{}\n", 3_000)
    (tmp_path / "sub.log").mkdir()

    assert latest_log_file(tmp_path) == tmp_path / "new.txt"


def test_latest_log_file_errors(tmp_path: Path) -> None:
    with pytest.raises(LogSourceError, match="No log files found"):
        latest_log_file(tmp_path)
    with pytest.raises(LogSourceError, match="Cannot read folder"):
        latest_log_file(tmp_path / "missing")


@pytest.mark.asyncio
async def test_folder_source_reads_newest_file(tmp_path: Path) -> None:
    _touch(tmp_path / "a.log", "2024-01-01 10:00:00 [Info]: from a\n", 1_000)
    _touch(tmp_path / "b.log", "2024-01-01 10:00:00 [Info]: from b\n", 2_000)

    lines = await FolderLogSource().fetch(FetchRequest(path=str(tmp_path)))
    assert lines == ["2024-01-01 10:00:00 [Info]: from b"]


def test_line_matches_needs_both_bounds_for_time_window() -> None:
    start = datetime(2024, 1, 1, 11, 0, tzinfo=DEFAULT_SOURCE_TZ)
    line = "2024-01-01 10:00:00 [Info]: early"

    assert line_matches(line, filter="", level=ViewLevel.ALL, start=start, end=None)
    assert not line_matches(line, filter="", level=ViewLevel.ALL, start=start, end=start)
    assert not line_matches(
        "no timestamp", filter="", level=ViewLevel.ALL, start=start, end=start
    )


def test_line_matches_uses_first_level_tag() -> None:
    line = "2024-01-01 10:00:00 [Info]: forwarded [Error] from peer"
    assert line_matches(line, filter="", level=ViewLevel.INFO, start=None, end=None)
    assert not line_matches(line, filter="", level=ViewLevel.ERROR, start=None, end=None)
