"""Per-view state ownership and write-through persistence."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .models import FilterMode, ViewLevel, ViewState
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_RETENTION = 10000

_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    name: TypeAdapter(info.annotation) for name, info in ViewState.model_fields.items()
}


class ViewStore:
    """Owns one view's ``ViewState`` and persists every field on change.

    Each field lives under its own key, ``"<namespace>:<field>"``, so two views
    with different namespaces never collide and a corrupt value only costs
    that one field (it falls back to its default).
    """

    def __init__(
        self,
        store: KeyValueStore,
        namespace: str,
        *,
        retention: int = DEFAULT_RETENTION,
    ) -> None:
        if not namespace:
            raise ValueError("namespace must be non-empty")
        if retention < 1:
            raise ValueError("retention must be >= 1")
        self._store = store
        self.namespace = namespace
        self.retention = retention
        self.state = self._load()

    def key(self, field: str) -> str:
        return f"{self.namespace}:{field}"

    def _load(self) -> ViewState:
        values: dict[str, Any] = {}
        for field, adapter in _ADAPTERS.items():
            raw = self._store.get(self.key(field))
            if raw is None:
                continue
            try:
                values[field] = adapter.validate_json(raw)
            except ValidationError as e:
                logger.warning(
                    "Discarding persisted %s for %s: %s", field, self.namespace, e.errors()[0]["msg"]
                )
        state = ViewState(**values)
        if len(state.raw_logs) > self.retention:
            state.raw_logs = state.raw_logs[-self.retention :]
        return state

    def _write(self, field: str, value: Any) -> None:
        setattr(self.state, field, value)
        stored = getattr(self.state, field)
        self._store.set(self.key(field), _ADAPTERS[field].dump_json(stored).decode("utf-8"))

    def set_source_path(self, path: str) -> None:
        self._write("source_path", path)

    def set_filter_text(self, text: str) -> None:
        self._write("filter_text", text)

    def set_filter_mode(self, mode: FilterMode | str) -> None:
        self._write("filter_mode", mode)

    def set_level(self, level: ViewLevel | str) -> None:
        self._write("level", level)

    def set_start_time(self, value: str) -> None:
        self._write("start_time", value)

    def set_end_time(self, value: str) -> None:
        self._write("end_time", value)

    def set_autoscroll(self, enabled: bool) -> None:
        self._write("autoscroll", enabled)

    def set_bookmarks(self, bookmarks: list[str]) -> None:
        self._write("bookmarks", bookmarks)

    def remove_bookmarks(self) -> None:
        self.state.bookmarks = []
        self._store.remove(self.key("bookmarks"))

    def set_raw_logs(self, lines: Iterable[str]) -> None:
        """Replace the raw lines, keeping only the newest ``retention`` of them."""
        lines = list(lines)
        if len(lines) > self.retention:
            lines = lines[-self.retention :]
        self._write("raw_logs", lines)

    def append_raw_logs(self, lines: Iterable[str]) -> None:
        """Extend the raw lines; the oldest are evicted past the ceiling."""
        self.set_raw_logs([*self.state.raw_logs, *lines])

    def reset_to_default(self) -> None:
        """Clear filter text, level and time range (path and bookmarks stay)."""
        self.set_filter_text("")
        self.set_level(ViewLevel.ALL)
        self.set_start_time("")
        self.set_end_time("")

    def clear_cache(self) -> None:
        """Remove every persisted field of this namespace and reset to defaults."""
        for field in _ADAPTERS:
            self._store.remove(self.key(field))
        self.state = ViewState()
