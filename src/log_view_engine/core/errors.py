"""Exception types raised by the log view engine."""

from __future__ import annotations


class LogViewerError(Exception):
    """Base class for log view engine errors."""


class LogSourceError(LogViewerError):
    """A log source could not produce lines (I/O failure, bad bounds, no file)."""
