"""Debounced and periodic refresh scheduling on asyncio.

Inputs are ``on_params_changed()`` (a fetch parameter changed) and ``tick()``
(the periodic timer fired). Both go through one debounce slot, so a burst of
changes yields a single fetch. At most one fetch runs at a time; a trigger
that fires while a fetch is in flight is remembered once and re-run when the
fetch finishes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_S = 0.3
DEFAULT_INTERVAL_S = 5.0


class RefreshScheduler:
    def __init__(
        self,
        fetch: Callable[[], Awaitable[None]],
        *,
        debounce_s: float = DEFAULT_DEBOUNCE_S,
        interval_s: float = DEFAULT_INTERVAL_S,
    ) -> None:
        if debounce_s < 0:
            raise ValueError("debounce_s must be >= 0")
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self._fetch = fetch
        self.debounce_s = debounce_s
        self.interval_s = interval_s
        self._debounce_handle: asyncio.TimerHandle | None = None
        self._interval_task: asyncio.Task[None] | None = None
        self._fetch_task: asyncio.Task[None] | None = None
        self._pending = False

    @property
    def running(self) -> bool:
        """Whether the periodic timer is active."""
        return self._interval_task is not None and not self._interval_task.done()

    @property
    def in_flight(self) -> bool:
        return self._fetch_task is not None and not self._fetch_task.done()

    @property
    def debounce_pending(self) -> bool:
        return self._debounce_handle is not None

    def start(self) -> None:
        """Start the periodic timer (requires a running event loop)."""
        if self.running:
            return
        self._interval_task = asyncio.get_running_loop().create_task(self._interval_loop())

    def stop(self) -> None:
        """Tear down the periodic timer and any pending debounce.

        A fetch already in flight is not cancelled; its result still lands.
        """
        if self._interval_task is not None:
            self._interval_task.cancel()
            self._interval_task = None
        self._cancel_debounce()
        self._pending = False

    def on_params_changed(self) -> None:
        """A fetch parameter changed: debounce a fetch and restart the interval."""
        self._arm_debounce()
        if self.running:
            self._interval_task.cancel()
            self._interval_task = asyncio.get_running_loop().create_task(self._interval_loop())

    def tick(self) -> None:
        """Periodic trigger; shares the debounce slot with parameter changes."""
        self._arm_debounce()

    async def refresh_now(self) -> None:
        """Skip the debounce and fetch immediately, then wait for it."""
        self._cancel_debounce()
        if self.in_flight:
            self._pending = True
        else:
            self._fetch_task = asyncio.get_running_loop().create_task(self._run())
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until no fetch is in flight (including a queued re-run)."""
        while self.in_flight:
            await asyncio.shield(self._fetch_task)

    def _cancel_debounce(self) -> None:
        if self._debounce_handle is not None:
            self._debounce_handle.cancel()
            self._debounce_handle = None

    def _arm_debounce(self) -> None:
        self._cancel_debounce()
        loop = asyncio.get_running_loop()
        self._debounce_handle = loop.call_later(self.debounce_s, self._fire)

    def _fire(self) -> None:
        self._debounce_handle = None
        if self.in_flight:
            logger.debug("Fetch in flight; queueing one re-run")
            self._pending = True
            return
        self._fetch_task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while True:
            self._pending = False
            try:
                await self._fetch()
            except Exception:
                logger.exception("Scheduled fetch failed")
            if not self._pending:
                break

    async def _interval_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            logger.debug("Periodic refresh tick")
            self.tick()
