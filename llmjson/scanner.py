"""
Boundary Scanner — Locate the first depth-balanced JSON structure in text.

One pass, O(n). A single depth counter is shared by objects and arrays,
so `{"a": ]` counts as balanced here; kind mismatches are left for the
JSON decoder to reject.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

OPENERS = "{["
CLOSERS = "}]"


class Boundary(NamedTuple):
    """Span of a structure in the scanned text.

    `closed` is False when depth never returned to zero; `end` is then
    `len(text)` and the span is speculative (truncated input).
    """

    start: int
    end: int
    closed: bool


def find_json_boundaries(text: str) -> Optional[Boundary]:
    """Return the span of the first structural `{`/`[` and its matching closer."""
    start = -1
    depth = 0
    in_string = False
    escape = False

    for idx, ch in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch in OPENERS:
            if depth == 0 and start == -1:
                start = idx
            depth += 1
        elif ch in CLOSERS:
            if depth == 0:
                continue  # stray closer before any opener
            depth -= 1
            if depth == 0:
                return Boundary(start, idx + 1, True)

    if start == -1:
        return None
    return Boundary(start, len(text), False)
