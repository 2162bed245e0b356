"""Content-keyed bookmarks.

A bookmark is the exact text of a line, not its index: indices shift every
time the filter changes, text does not. Positions in the current filtered view
are derived on demand.
"""

from __future__ import annotations

from collections.abc import Sequence

from .view_store import ViewStore


class BookmarkManager:
    """Bookmark operations over a view's persisted bookmark list."""

    def __init__(self, store: ViewStore) -> None:
        self._store = store

    @property
    def bookmarks(self) -> list[str]:
        """Persisted bookmark contents in insertion order."""
        return list(self._store.state.bookmarks)

    def is_bookmarked(self, line: str) -> bool:
        return line in self._store.state.bookmarks

    def toggle(self, filtered_view: Sequence[str], filtered_index: int) -> bool:
        """Add or remove the line at ``filtered_index``; return True if now bookmarked."""
        if not 0 <= filtered_index < len(filtered_view):
            raise IndexError(f"filtered index {filtered_index} out of range")
        line = filtered_view[filtered_index]
        current = self._store.state.bookmarks
        if line in current:
            self._store.set_bookmarks([b for b in current if b != line])
            return False
        self._store.set_bookmarks([*current, line])
        return True

    def clear(self) -> None:
        self._store.remove_bookmarks()

    def effective_positions(self, filtered_view: Sequence[str]) -> list[int]:
        """Index of each bookmark in the view, in bookmark order; unmatched are omitted."""
        first_index: dict[str, int] = {}
        for i, line in enumerate(filtered_view):
            first_index.setdefault(line, i)
        return [first_index[b] for b in self._store.state.bookmarks if b in first_index]

    @staticmethod
    def jump_target(filtered_view: Sequence[str], filtered_index: int) -> int | None:
        """Index the display should scroll to, or None when it is out of range."""
        if 0 <= filtered_index < len(filtered_view):
            return filtered_index
        return None
