"""Segment Splitter — partition text into top-level bracketed/quoted runs."""

from __future__ import annotations


def _flush(segments: list[str], current: list[str]) -> None:
    segment = "".join(current).strip().rstrip(",").strip()
    if segment:
        segments.append(segment)
    current.clear()


def split_segments(text: str) -> list[str]:
    """
    Split `text` into candidate segments, in original order.

    A segment closes when both the brace and the bracket counter drop back
    to zero after having been opened. A new segment starts when an opener
    shows up at zero depth right after a comma or with nothing accumulated,
    which separates concatenated values such as `{"a":1},{"b":2}`.
    Blank segments are dropped.
    """
    segments: list[str] = []
    current: list[str] = []
    braces = 0
    brackets = 0
    opened = False
    in_string = False
    escape = False

    for ch in text:
        if in_string:
            current.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            current.append(ch)
        elif ch in "{[":
            if braces == 0 and brackets == 0:
                pending = "".join(current).strip()
                if not pending or pending.endswith(","):
                    _flush(segments, current)
            if ch == "{":
                braces += 1
            else:
                brackets += 1
            opened = True
            current.append(ch)
        elif ch in "}]":
            current.append(ch)
            if ch == "}":
                braces = max(braces - 1, 0)
            else:
                brackets = max(brackets - 1, 0)
            if opened and braces == 0 and brackets == 0:
                _flush(segments, current)
                opened = False
        else:
            current.append(ch)

    _flush(segments, current)
    return segments
