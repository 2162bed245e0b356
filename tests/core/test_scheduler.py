from __future__ import annotations

import asyncio
import logging

import pytest

from log_view_engine.core.scheduler import RefreshScheduler


class CountingFetch:
    def __init__(self) -> None:
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.gate: asyncio.Event | None = None

    async def __call__(self) -> None:
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
        finally:
            self.active -= 1


@pytest.mark.asyncio
async def test_burst_of_changes_fetches_once() -> None:
    fetch = CountingFetch()
    sched = RefreshScheduler(fetch, debounce_s=0.05, interval_s=10)

    for _ in range(5):
        sched.on_params_changed()
        await asyncio.sleep(0.005)
    assert fetch.calls == 0

    await asyncio.sleep(0.15)
    await sched.wait_idle()
    assert fetch.calls == 1
    sched.stop()


@pytest.mark.asyncio
async def test_tick_goes_through_debounce() -> None:
    fetch = CountingFetch()
    sched = RefreshScheduler(fetch, debounce_s=0.02, interval_s=10)
    sched.tick()
    assert sched.debounce_pending
    await asyncio.sleep(0.08)
    await sched.wait_idle()
    assert fetch.calls == 1
    assert not sched.debounce_pending


@pytest.mark.asyncio
async def test_periodic_timer_keeps_fetching() -> None:
    fetch = CountingFetch()
    sched = RefreshScheduler(fetch, debounce_s=0, interval_s=0.03)
    sched.start()
    assert sched.running
    await asyncio.sleep(0.2)
    sched.stop()
    await sched.wait_idle()
    assert fetch.calls >= 2
    assert not sched.running


@pytest.mark.asyncio
async def test_stop_cancels_pending_debounce() -> None:
    fetch = CountingFetch()
    sched = RefreshScheduler(fetch, debounce_s=0.02, interval_s=10)
    sched.start()
    sched.on_params_changed()
    sched.stop()
    await asyncio.sleep(0.08)
    assert fetch.calls == 0


@pytest.mark.asyncio
async def test_only_one_fetch_in_flight_and_one_rerun_queued() -> None:
    fetch = CountingFetch()
    fetch.gate = asyncio.Event()
    sched = RefreshScheduler(fetch, debounce_s=0, interval_s=10)

    sched.tick()
    await asyncio.sleep(0.02)
    assert sched.in_flight

    sched.on_params_changed()
    await asyncio.sleep(0.02)
    sched.tick()
    await asyncio.sleep(0.02)
    assert fetch.calls == 1

    fetch.gate.set()
    await sched.wait_idle()
    assert fetch.calls == 2
    assert fetch.max_active == 1


@pytest.mark.asyncio
async def test_refresh_now_skips_debounce() -> None:
    fetch = CountingFetch()
    sched = RefreshScheduler(fetch, debounce_s=10, interval_s=10)
    sched.on_params_changed()
    await sched.refresh_now()
    assert fetch.calls == 1
    assert not sched.debounce_pending


@pytest.mark.asyncio
async def test_failing_fetch_is_logged_and_scheduler_survives(
    caplog: pytest.LogCaptureFixture,
) -> None:
    calls = 0

    async def flaky() -> None:
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("disk on fire")

    sched = RefreshScheduler(flaky, debounce_s=0, interval_s=10)
    with caplog.at_level(logging.ERROR):
        await sched.refresh_now()
    assert "Scheduled fetch failed" in caplog.text

    await sched.refresh_now()
    assert calls == 2


def test_rejects_bad_timings() -> None:
    async def noop() -> None:
        return None

    with pytest.raises(ValueError):
        RefreshScheduler(noop, debounce_s=-1)
    with pytest.raises(ValueError):
        RefreshScheduler(noop, interval_s=0)
