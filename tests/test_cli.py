from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from log_view_engine.cli import _apply_args, _build_parser, _build_viewer, _follow, main
from log_view_engine.tools.viewer import toggle_bookmark_impl


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


def test_cli_prints_filtered_view(tmp_path: Path, write_view_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "app.log"
    write_view_log(log)

    code = _run([str(log), "--mode", "regex", "--filter", r"id=\w+"])

    out = capsys.readouterr().out
    assert code == 0
    assert "retrying request id=abc123" in out
    assert "Showing 1 of 5 lines." in out


def test_cli_exports_and_keeps_state(tmp_path: Path, write_view_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "app.log"
    write_view_log(log)
    state = tmp_path / "state.json"
    dest = tmp_path / "out.log"

    assert _run([str(log), "--level", "error", "--state", str(state), "--export", str(dest)]) == 0
    assert dest.read_text(encoding="utf-8") == "2024-01-01 10:00:04.480 [Error]: upstream timeout route=/api/v1/items"
    assert state.exists()

    # The level is remembered by the state file.
    capsys.readouterr()
    assert _run([str(log), "--state", str(state)]) == 0
    assert "Showing 1 of 1 lines." in capsys.readouterr().out


def test_cli_reports_missing_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = _run([str(tmp_path / "missing.log")])
    assert code == 2
    assert "Failed to fetch logs" in capsys.readouterr().err


def test_cli_rejects_bad_bound(tmp_path: Path, write_view_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "app.log"
    write_view_log(log)
    assert _run([str(log), "--since", "whenever"]) == 2
    assert "Invalid start time" in capsys.readouterr().err


def test_cli_prints_time_range_and_bookmarks(
    tmp_path: Path, write_view_log, capsys: pytest.CaptureFixture[str]
) -> None:
    log = tmp_path / "app.log"
    write_view_log(log)
    state = tmp_path / "state.json"
    assert _run([str(log), "--state", str(state)]) == 0
    out = capsys.readouterr().out
    assert "Time range: 2024-01-01 10:00:00.000 .. 2024-01-01 10:00:05.000" in out

    toggle_bookmark_impl(index=0, state_file=state)
    assert _run([str(log), "--state", str(state)]) == 0
    out = capsys.readouterr().out
    assert "* 2024-01-01 10:00:00.000 [Info]: service started" in out
    assert "  2024-01-01 10:00:05.000 [Info]: shutting down" in out


@pytest.mark.asyncio
async def test_follow_prints_appended_lines(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("LOG_VIEWER_DEBOUNCE_MS", "10")
    monkeypatch.setenv("LOG_VIEWER_INTERVAL_MS", "50")
    log = tmp_path / "app.log"
    log.write_text(
        "2024-01-01 10:00:00 [Info]: a1\n2024-01-01 10:00:05 [Info]: a2\n", encoding="utf-8"
    )
    args = _build_parser().parse_args([str(log), "--follow"])
    viewer = _build_viewer(args)
    _apply_args(viewer, args)

    task = asyncio.create_task(_follow(viewer, args))
    await asyncio.sleep(0.15)
    with log.open("a", encoding="utf-8") as f:
        f.write("2024-01-01 10:00:09 [Info]: a3\n")
    await asyncio.sleep(0.3)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    await viewer.scheduler.wait_idle()

    out = capsys.readouterr().out
    assert out.count("[Info]: a2") == 1
    assert "2024-01-01 10:00:09 [Info]: a3" in out
    assert viewer.start_time == "2024-01-01T10:00:00.000"
    assert viewer.end_time == ""
