"""Recover the source location of an uncaught script error from its trace.

Two trace layouts are recognised:

    Chromium:          "Error: Something went wrong"
                       "    at http://localhost:3456/:7:23"

    Firefox / WebKit:  "global code@http://localhost:3456/:7:23"

Usage:
    loc = locate(err.stack, err.message)
    loc.file_url, loc.line, loc.column
"""

import re
from dataclasses import dataclass

ANONYMOUS_SOURCE = "<anonymous>"

_FRAME_PREFIX = "at "
_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class TraceLocation:
    file_url: str | None
    line: int
    column: int


_NOT_FOUND = TraceLocation(file_url=None, line=0, column=0)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def locate(stack: str | None, message: str = "") -> TraceLocation:
    """Return the first non-anonymous frame location found in *stack*.

    Never raises: an unparsable trace yields line 0, column 0 and no file URL.
    """
    lines = (stack or "").strip().split("\n")
    if not lines[0]:
        return _NOT_FOUND

    if lines[0].strip().endswith(message):
        frames = (_prefixed_frame(line) for line in lines[1:])
    else:
        frames = (_delimited_frame(line) for line in lines)

    for location in frames:
        if location is None:
            continue
        parsed = _split_location(location)
        if parsed.file_url in ("", ANONYMOUS_SOURCE):
            continue
        return parsed

    return _NOT_FOUND


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _prefixed_frame(line: str) -> str | None:
    """``at http://h/p.js:7:23`` or ``at fn (http://h/p.js:7:23)``."""
    frame = line.strip().replace(_FRAME_PREFIX, "", 1)
    if frame.endswith(")") and "(" in frame:
        frame = frame[frame.rindex("(") + 1:-1]
    return frame or None


def _delimited_frame(line: str) -> str | None:
    """``global code@http://h/p.js:7:23``: the location follows the first ``@``."""
    _, sep, location = line.strip().partition("@")
    if not sep:
        return None
    return location


def _split_location(location: str) -> TraceLocation:
    # The URL itself contains colons (scheme, port), so only the two
    # rightmost segments are line and column.
    parts = location.split(":")
    column = _to_int(parts.pop()) if parts else 0
    line = _to_int(parts.pop()) if parts else 0
    return TraceLocation(file_url=":".join(parts), line=line, column=column)


def _to_int(value: str) -> int:
    match = _LEADING_INT_RE.match(value)
    return int(match.group(1)) if match else 0
