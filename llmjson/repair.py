"""
Repair Heuristics — Normalize near-JSON produced by LLMs.

All functions take a string and return a new one; inputs are never mutated.
Bracket tracking is string-aware: braces inside `"..."` or after a
backslash escape are content, not structure.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterator
from typing import Any, Optional

import structlog

from llmjson.models import ParseOptions
from llmjson.scanner import find_json_boundaries
from llmjson.segments import split_segments

logger = structlog.get_logger(__name__)

_CLOSER_FOR = {"{": "}", "[": "]"}


# ── RepairCache — per-call memo ──────────────────────────────────────


class RepairCache:
    """Bounded LRU memo of candidate → repaired text.

    Create one per parse call (the default) or inject one you own. It is
    purely an optimisation: ``RepairCache(maxsize=0)`` stores nothing and
    yields identical results.
    """

    def __init__(self, maxsize: int = 128) -> None:
        self._maxsize = maxsize
        self._entries: OrderedDict[str, str] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
            return None
        self._entries.move_to_end(key)
        self.hits += 1
        return value

    def put(self, key: str, value: str) -> None:
        if self._maxsize <= 0:
            return
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._maxsize:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# ── Step 1: trailing commas ──────────────────────────────────────────


def strip_trailing_commas(text: str) -> str:
    """Drop commas that sit directly (modulo whitespace) before `}` or `]`."""
    out: list[str] = []
    in_string = False
    escape = False
    n = len(text)

    for idx, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == ",":
            j = idx + 1
            while j < n and text[j].isspace():
                j += 1
            if j < n and text[j] in "}]":
                continue
        out.append(ch)

    return "".join(out)


# ── Step 2: auto-close ───────────────────────────────────────────────


def _open_stack(text: str) -> list[str]:
    """Unclosed openers, innermost last."""
    stack: list[str] = []
    in_string = False
    escape = False

    for ch in text:
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
        elif ch in "{[":
            stack.append(ch)
        elif ch in "}]" and stack:
            stack.pop()

    return stack


def _ends_on_opener(text: str) -> bool:
    """True when the last structural token outside strings is `{` or `[`."""
    last = ""
    in_string = False
    escape = False

    for ch in text:
        if in_string:
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_string = False
                last = ch
            continue
        if ch == '"':
            in_string = True
        elif not ch.isspace():
            last = ch

    return not in_string and last in _CLOSER_FOR


def close_open_brackets(text: str) -> str:
    """
    Append closers for every unclosed `{` / `[`, most recent first.

    `{"a": [1, {"b": 2` becomes `{"a": [1, {"b": 2}]}`. A dangling comma
    before the appended closers is dropped. Unterminated strings are left
    alone, so text cut mid-string still fails to decode.

    Text ending on an opener (`{"items": [`) is returned unchanged: closing
    it would only fabricate an empty container.
    """
    stack = _open_stack(text)
    if not stack:
        return text
    body = text.rstrip()
    if body.endswith(","):
        body = body[:-1].rstrip()
    if _ends_on_opener(body):
        return text
    return body + "".join(_CLOSER_FOR[opener] for opener in reversed(stack))


def repair_candidate(
    candidate: str,
    options: ParseOptions | None = None,
    cache: RepairCache | None = None,
) -> str:
    """Apply trailing-comma removal and auto-closing; no-op unless attempt_fix."""
    options = options or ParseOptions()
    if not options.attempt_fix:
        return candidate

    if cache is not None:
        cached = cache.get(candidate)
        if cached is not None:
            return cached

    repaired = close_open_brackets(strip_trailing_commas(candidate.strip()))

    if cache is not None:
        cache.put(candidate, repaired)
    return repaired


# ── Structure isolation (scanner, then splitter) ─────────────────────


def isolate_structure(candidate: str) -> Optional[str]:
    """Span of the first balanced structure, else the first text segment."""
    boundary = find_json_boundaries(candidate)
    if boundary is not None:
        return candidate[boundary.start : boundary.end]
    segments = split_segments(candidate)
    if segments:
        return segments[0]
    return None


# ── Step 3: truncate and re-close ────────────────────────────────────


def _trim_to_boundary(text: str) -> str:
    """Cut `text` back to its last complete structural point.

    Safe points are right after a closer and right before a comma, both
    outside strings. Anything past the last one (a half-written key, string
    or number) is discarded. Cutting right after an opener would leave an
    empty container, so that is never a safe point.
    """
    cut = 0
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
        elif ch in "}]":
            cut = idx + 1
        elif ch == ",":
            cut = idx

    return text[:cut]


def partial_variants(candidate: str, options: ParseOptions | None = None) -> Iterator[str]:
    """
    Yield progressively shorter, re-closed prefixes of a long candidate.

    First cut at 80% of the length, then 90% of the previous cut, up to
    ``partial_max_attempts`` times. Only active with allow_partial_recovery
    and inputs longer than ``partial_min_length``.
    """
    options = options or ParseOptions()
    text = candidate.strip()
    if not (options.attempt_fix and options.allow_partial_recovery):
        return
    if len(text) <= options.partial_min_length:
        return

    length = int(len(text) * 0.8)
    for attempt in range(1, options.partial_max_attempts + 1):
        trimmed = _trim_to_boundary(text[:length])
        if trimmed:
            variant = close_open_brackets(strip_trailing_commas(trimmed))
            logger.debug(
                "partial_variant",
                attempt=attempt,
                cut_at=length,
                variant_length=len(variant),
            )
            yield variant
        length = int(length * 0.9)
        if length <= 0:
            return


def is_nonempty_container(value: Any) -> bool:
    """True for an object with at least one key or an array with an element."""
    return isinstance(value, (dict, list)) and len(value) > 0
