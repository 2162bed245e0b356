"""Core data models for the log view engine."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FilterMode(str, Enum):
    """How the free-text filter is matched against a raw line."""

    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    REGEX = "regex"
    RANGE = "range"


class ViewLevel(str, Enum):
    """Level selector of a view; values match the bracketed tags in log lines."""

    ALL = "All"
    DEBUG = "Debug"
    INFO = "Info"
    WARNING = "Warning"
    ERROR = "Error"

    @property
    def tag(self) -> str | None:
        """Literal tag searched for in a line, e.g. '[Error]'. None for ALL."""
        if self is ViewLevel.ALL:
            return None
        return f"[{self.value}]"


class FetchRequest(BaseModel):
    """Parameters handed to a log source for one fetch."""

    path: str
    filter: str = Field(
        default="",
        description=(
            "Case-sensitive substring. A view only sends its filter text here in "
            "exact mode; the other modes match client-side on unfiltered lines."
        ),
    )
    level: ViewLevel = ViewLevel.ALL
    start_date_time: str = Field(default="", description="ISO-8601 with offset, or empty.")
    end_date_time: str = Field(default="", description="ISO-8601 with offset, or empty.")


class ViewState(BaseModel):
    """Full mutable state of one open log view; the unit of persistence."""

    model_config = ConfigDict(validate_assignment=True)

    source_path: str = ""
    filter_text: str = ""
    filter_mode: FilterMode = FilterMode.EXACT
    level: ViewLevel = ViewLevel.ALL
    start_time: str = ""  # canonical YYYY-MM-DDTHH:MM:SS.mmm, "" when unset
    end_time: str = ""
    raw_logs: list[str] = Field(default_factory=list)
    bookmarks: list[str] = Field(default_factory=list)  # line contents, insertion order
    autoscroll: bool = False
