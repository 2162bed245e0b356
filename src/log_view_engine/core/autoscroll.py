"""Scroll-to-latest decision after each view recomputation."""

from __future__ import annotations

from .models import ViewLevel


def should_scroll_to_bottom(
    autoscroll: bool,
    filter_text: str,
    level: ViewLevel | str,
    start_time: str,
    end_time: str,
) -> bool:
    """True when autoscroll is on, or when no constraint narrows the view."""
    if autoscroll:
        return True
    unconstrained = (
        not filter_text
        and ViewLevel(level) == ViewLevel.ALL
        and not start_time
        and not end_time
    )
    return unconstrained
