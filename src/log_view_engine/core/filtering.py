"""Client-side filtering of raw log lines.

Everything here is pure: the same inputs always give the same filtered view,
which is always an order-preserving subsequence of the input.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

from .models import FilterMode, ViewLevel

logger = logging.getLogger(__name__)


def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning("Invalid regular expression %r: %s", pattern, e)
        return None


def _range_slice(lines: Sequence[str], needle: str) -> list[str]:
    """Inclusive slice between the first and last line containing needle."""
    first = next((i for i, line in enumerate(lines) if needle in line), -1)
    if first == -1:
        return list(lines)
    last = next(i for i in range(len(lines) - 1, first - 1, -1) if needle in lines[i])
    return list(lines[first : last + 1])


def apply_text_filter(lines: Sequence[str], filter_text: str, filter_mode: FilterMode) -> list[str]:
    """Apply the free-text predicate for the given mode."""
    if not filter_text:
        return list(lines)

    if filter_mode == FilterMode.EXACT:
        return [line for line in lines if filter_text in line]
    if filter_mode == FilterMode.CASE_INSENSITIVE:
        needle = filter_text.lower()
        return [line for line in lines if needle in line.lower()]
    if filter_mode == FilterMode.REGEX:
        rx = _compile(filter_text)
        if rx is None:
            return list(lines)
        return [line for line in lines if rx.search(line)]
    if filter_mode == FilterMode.RANGE:
        return _range_slice(lines, filter_text)

    raise ValueError(f"Unknown filter mode: {filter_mode!r}")


def apply_level_filter(lines: Sequence[str], level: ViewLevel) -> list[str]:
    """Keep lines carrying the literal '[<Level>]' tag (all lines for ALL)."""
    tag = level.tag
    if tag is None:
        return list(lines)
    return [line for line in lines if tag in line]


def filter_logs(
    raw_logs: Sequence[str],
    filter_text: str = "",
    filter_mode: FilterMode = FilterMode.EXACT,
    level: ViewLevel = ViewLevel.ALL,
) -> list[str]:
    """Derive the filtered view: text predicate first, then level."""
    result = apply_text_filter(raw_logs, filter_text, filter_mode)
    return apply_level_filter(result, level)
