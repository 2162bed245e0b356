"""Viewer configuration and environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta, timezone, tzinfo


@dataclass(frozen=True, slots=True)
class ViewerConfig:
    debounce_s: float = 0.3
    interval_s: float = 5.0

    # Ceiling on retained raw lines; oldest are evicted first.
    retention: int = 10000

    # Timestamps in log lines carry no zone; they are read in this fixed offset.
    source_utc_offset_hours: int = 8

    # Log sources only read the tail of a file and cap the returned lines.
    max_read_bytes: int = 1024 * 1024
    max_lines: int = 10000

    # Drop results of fetches superseded by a newer one.
    sequenced: bool = False

    @property
    def source_tz(self) -> tzinfo:
        return timezone(timedelta(hours=self.source_utc_offset_hours))


_INT_OVERRIDES: tuple[tuple[str, str, int], ...] = (
    # (env var, field, minimum)
    ("LOG_VIEWER_RETENTION", "retention", 1),
    ("LOG_VIEWER_UTC_OFFSET", "source_utc_offset_hours", -12),
    ("LOG_VIEWER_MAX_LINES", "max_lines", 1),
)

_MS_OVERRIDES: tuple[tuple[str, str], ...] = (
    ("LOG_VIEWER_DEBOUNCE_MS", "debounce_s"),
    ("LOG_VIEWER_INTERVAL_MS", "interval_s"),
)


def _env_int(name: str, minimum: int) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def resolve_viewer_config(cfg: ViewerConfig | None = None) -> ViewerConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = ViewerConfig()

    changes: dict[str, object] = {}
    for name, field, minimum in _INT_OVERRIDES:
        value = _env_int(name, minimum)
        if value is not None:
            changes[field] = value
    for name, field in _MS_OVERRIDES:
        value = _env_int(name, 1)
        if value is not None:
            changes[field] = value / 1000

    offset = changes.get("source_utc_offset_hours")
    if isinstance(offset, int) and offset > 14:
        raise ValueError("LOG_VIEWER_UTC_OFFSET must be <= 14")

    if not changes:
        return cfg
    return replace(cfg, **changes)
