"""Split log lines into display parts.

Rendering is left to the display; this only tells it which span is the
timestamp, which is the level and which fragments of the message look like
JSON objects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_LINE_RE = re.compile(
    r"^(?P<ts>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(?:[ .,]\d{3})?):?\s*"
    r"\[(?P<level>Debug|Info|Warning|Error)\]:?\s?(?P<content>.*)$"
)
_JSON_SPLIT_RE = re.compile(r"(\{.*?\})")


@dataclass(frozen=True, slots=True)
class LineParts:
    timestamp: str
    level: str
    content: str


@dataclass(frozen=True, slots=True)
class Fragment:
    text: str
    is_json: bool = False


def split_line(line: str) -> LineParts | None:
    """Return the parts of a well-formed line, or None to show it verbatim."""
    m = _LINE_RE.match(line)
    if not m:
        return None
    return LineParts(timestamp=m.group("ts"), level=m.group("level"), content=m.group("content"))


def json_fragments(content: str) -> list[Fragment]:
    """Split content around non-greedy '{...}' spans (empty pieces dropped)."""
    out: list[Fragment] = []
    for part in _JSON_SPLIT_RE.split(content):
        if not part:
            continue
        out.append(Fragment(text=part, is_json=part.startswith("{") and part.endswith("}")))
    return out
