"""Log view orchestration.

``LogViewer`` ties the pieces of one open log view together: it owns the
persisted ``ViewStore``, fetches through a ``LogSource`` on the scheduler's
cue, derives the filtered view, positions bookmarks, and tells the display
whether to jump to the newest line.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from .autoscroll import should_scroll_to_bottom
from .bookmarks import BookmarkManager
from .config import ViewerConfig, resolve_viewer_config
from .export import export_lines
from .filtering import filter_logs
from .models import FetchRequest, FilterMode, ViewLevel
from .scheduler import RefreshScheduler
from .sources import LogSource
from .storage import KeyValueStore
from .timestamps import bounds_from_lines, normalize_bound, to_source_iso
from .view_store import ViewStore

logger = logging.getLogger(__name__)

ViewChangedCallback = Callable[[list[str], bool], None]


class LogViewer:
    """State and operations of one open log view."""

    def __init__(
        self,
        source: LogSource,
        store: KeyValueStore,
        namespace: str,
        *,
        config: ViewerConfig | None = None,
        on_view_changed: ViewChangedCallback | None = None,
        initial_load: bool = True,
    ) -> None:
        """Create a view over ``source`` persisted in ``store`` under ``namespace``.

        ``initial_load=False`` resumes a view whose time range was already
        derived, so the next fetch does not fill cleared bounds again.
        """
        self.config = resolve_viewer_config(config)
        self._source = source
        self.store = ViewStore(store, namespace, retention=self.config.retention)
        self._bookmarks = BookmarkManager(self.store)
        self.scheduler = RefreshScheduler(
            self.fetch_logs,
            debounce_s=self.config.debounce_s,
            interval_s=self.config.interval_s,
        )
        self.on_view_changed = on_view_changed
        self.error: str | None = None
        self._initial_load = initial_load
        self._opened = False
        self._request_seq = 0
        self._filtered: list[str] | None = None

    # -- state ---------------------------------------------------------------

    @property
    def path(self) -> str:
        return self.store.state.source_path

    @property
    def filter_text(self) -> str:
        return self.store.state.filter_text

    @property
    def filter_mode(self) -> FilterMode:
        return self.store.state.filter_mode

    @property
    def level(self) -> ViewLevel:
        return self.store.state.level

    @property
    def start_time(self) -> str:
        return self.store.state.start_time

    @property
    def end_time(self) -> str:
        return self.store.state.end_time

    @property
    def autoscroll(self) -> bool:
        return self.store.state.autoscroll

    @property
    def raw_logs(self) -> list[str]:
        return self.store.state.raw_logs

    @property
    def filtered_logs(self) -> list[str]:
        """Current filtered view, recomputed only after an input changed."""
        if self._filtered is None:
            self._filtered = filter_logs(
                self.raw_logs, self.filter_text, self.filter_mode, self.level
            )
        return self._filtered

    @property
    def bookmarks(self) -> list[str]:
        return self._bookmarks.bookmarks

    @property
    def filtered_bookmarks(self) -> list[int]:
        """Positions of bookmarked lines in the filtered view."""
        return self._bookmarks.effective_positions(self.filtered_logs)

    @property
    def scroll_to_bottom(self) -> bool:
        return should_scroll_to_bottom(
            self.autoscroll, self.filter_text, self.level, self.start_time, self.end_time
        )

    # -- lifecycle -----------------------------------------------------------

    def open(self) -> None:
        """Start refreshing (needs a running event loop)."""
        self._opened = True
        self._params_changed()

    def close(self) -> None:
        self._opened = False
        self.scheduler.stop()

    # -- mutations -----------------------------------------------------------

    def set_path(self, path: str) -> None:
        """Switch the source; a new path starts over with an empty time range."""
        if path != self.path:
            self.store.set_source_path(path)
            self.store.set_start_time("")
            self.store.set_end_time("")
            self._initial_load = True
        self._view_changed()
        if not path:
            self.scheduler.stop()
            return
        self._params_changed()

    def set_filter_text(self, text: str) -> None:
        self.store.set_filter_text(text)
        self._view_changed()
        self._params_changed()

    def set_filter_mode(self, mode: FilterMode | str) -> None:
        self.store.set_filter_mode(mode)
        self._view_changed()
        # The mode decides whether the text is also sent to the source.
        self._params_changed()

    def set_level(self, level: ViewLevel | str) -> None:
        self.store.set_level(level)
        self._view_changed()
        self._params_changed()

    def set_start_time(self, value: str) -> None:
        self.store.set_start_time(self._bound(value, "start"))
        self._view_changed()
        self._params_changed()

    def set_end_time(self, value: str) -> None:
        self.store.set_end_time(self._bound(value, "end"))
        self._view_changed()
        self._params_changed()

    def set_autoscroll(self, enabled: bool) -> None:
        self.store.set_autoscroll(enabled)
        self._notify()

    def dismiss_error(self) -> None:
        self.error = None

    # -- fetching ------------------------------------------------------------

    def build_request(self) -> FetchRequest:
        """Request for the current parameters.

        Only exact-mode text is sent to the source; the other modes need the
        unfiltered lines to match against.
        """
        tz = self.config.source_tz
        return FetchRequest(
            path=self.path,
            filter=self.filter_text if self.filter_mode == FilterMode.EXACT else "",
            level=self.level,
            start_date_time=to_source_iso(self.start_time, tz=tz),
            end_date_time=to_source_iso(self.end_time, tz=tz),
        )

    async def fetch_logs(self) -> None:
        """Fetch from the source and replace the raw lines.

        Failures are kept as ``error``; the previous lines stay in place.
        """
        if not self.path:
            return
        self._request_seq += 1
        seq = self._request_seq
        request = self.build_request()

        try:
            self.error = None
            lines = await self._source.fetch(request)
        except Exception as e:
            if self._is_stale(seq):
                return
            logger.warning("Fetching logs from %s failed: %s", request.path, e)
            self.error = f"Failed to fetch logs: {e}"
            return

        if self._is_stale(seq):
            logger.debug("Dropping stale fetch result #%d", seq)
            return

        self.store.set_raw_logs(lines)
        self._view_changed()
        if lines and self._initial_load:
            self._initial_load = False
            self._populate_bounds(lines)

    async def refresh(self) -> None:
        """Manual refresh: fetch now, bypassing the debounce."""
        if self._opened:
            await self.scheduler.refresh_now()
        else:
            await self.fetch_logs()

    def _populate_bounds(self, lines: list[str]) -> None:
        first, last = bounds_from_lines(lines)
        changed = False
        if first and not self.start_time:
            self.store.set_start_time(first)
            changed = True
        if last and not self.end_time:
            self.store.set_end_time(last)
            changed = True
        if changed:
            self._view_changed()
            self._params_changed()

    def _is_stale(self, seq: int) -> bool:
        return self.config.sequenced and seq != self._request_seq

    # -- bookmarks -----------------------------------------------------------

    def toggle_bookmark(self, filtered_index: int) -> bool:
        return self._bookmarks.toggle(self.filtered_logs, filtered_index)

    def is_bookmarked(self, line: str) -> bool:
        return self._bookmarks.is_bookmarked(line)

    def clear_bookmarks(self) -> None:
        self._bookmarks.clear()

    def jump_to_bookmark(self, filtered_index: int) -> int | None:
        """Index the display should scroll to for a bookmark position."""
        return self._bookmarks.jump_target(self.filtered_logs, filtered_index)

    # -- reset / cache / export ----------------------------------------------

    async def reset_to_default(self) -> None:
        """Clear filter, level and time range, then refresh immediately."""
        self.store.reset_to_default()
        self._initial_load = True
        self._view_changed()
        self._params_changed()
        await self.refresh()

    def clear_cache(self) -> None:
        """Forget everything persisted for this view, bookmarks included."""
        self.scheduler.stop()
        self.store.clear_cache()
        self._initial_load = True
        self.error = None
        self._view_changed()

    async def export_logs(self, destination: str | Path) -> int:
        """Write the filtered view to ``destination``; return the line count."""
        count = await export_lines(destination, self.filtered_logs)
        logger.info("Exported %d lines to %s", count, destination)
        return count

    # -- internals -----------------------------------------------------------

    @staticmethod
    def _bound(value: str, which: str) -> str:
        if not value:
            return ""
        normalized = normalize_bound(value)
        if normalized is None:
            raise ValueError(f"Invalid {which} time: {value!r}")
        return normalized

    def _params_changed(self) -> None:
        if not self._opened or not self.path:
            return
        # Restarts the interval only when it already runs; start() then no-ops.
        self.scheduler.on_params_changed()
        self.scheduler.start()

    def _view_changed(self) -> None:
        self._filtered = None
        self._notify()

    def _notify(self) -> None:
        if self.on_view_changed is not None:
            self.on_view_changed(self.filtered_logs, self.scroll_to_bottom)
