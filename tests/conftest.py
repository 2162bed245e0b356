from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from log_view_engine.core.config import ViewerConfig
from log_view_engine.core.models import FetchRequest
from log_view_engine.core.storage import MemoryStore
from log_view_engine.core.viewer import LogViewer

SAMPLE_LINES = [
    "2024-01-01 10:00:00 [Info]: start",
    "2024-01-01 10:00:01 [Error]: boom",
    "2024-01-01 10:00:02 [Info]: end",
]


class FakeSource:
    """Log source returning whatever ``lines`` holds, recording every request."""

    def __init__(self, lines: list[str] | None = None) -> None:
        self.lines = list(lines or [])
        self.requests: list[FetchRequest] = []
        self.error: Exception | None = None

    async def fetch(self, request: FetchRequest) -> list[str]:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return list(self.lines)


@pytest.fixture
def sample_lines() -> list[str]:
    return list(SAMPLE_LINES)


@pytest.fixture
def fake_source(sample_lines: list[str]) -> FakeSource:
    return FakeSource(sample_lines)


@pytest.fixture
def fast_config() -> ViewerConfig:
    return ViewerConfig(debounce_s=0.01, interval_s=10.0)


@pytest.fixture
def make_viewer(
    fake_source: FakeSource, fast_config: ViewerConfig
) -> Callable[..., LogViewer]:
    def _make(
        *,
        store: MemoryStore | None = None,
        namespace: str = "fetch_logs",
        config: ViewerConfig | None = None,
        source: object | None = None,
    ) -> LogViewer:
        return LogViewer(
            source or fake_source,
            store if store is not None else MemoryStore(),
            namespace,
            config=config or fast_config,
        )

    return _make


@pytest.fixture
def write_view_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "2024-01-01 10:00:00.000 [Info]: service started",
                    '2024-01-01 10:00:01.250 [Debug]: config loaded {"workers": 4}',
                    "2024-01-01 10:00:03.010 [Warning]: retrying request id=abc123",
                    "2024-01-01 10:00:04.480 [Error]: upstream timeout route=/api/v1/items",
                    "2024-01-01 10:00:05.000 [Info]: shutting down",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write
