"""
Candidate Extractor — Find substrings of LLM output that are plausibly JSON.

Strategies, in priority order:
  1. Fenced blocks tagged ``json`` (any case)
  2. Other fenced blocks, only when no json-tagged block exists
  3. The whole trimmed text, when it starts like a JSON value
  4. The first depth-balanced structure found by the boundary scanner
  5. Flat inline objects ``{...}`` (no nested braces)
  6. Flat inline arrays ``[...]`` (no nested brackets)

Each strategy contributes at most ``max_candidates`` hits. Nested structures
are never matched by the inline patterns; the boundary scanner owns those.
When the first structure never closes (truncated reply), inline hits inside
it are dropped.
"""

from __future__ import annotations

import re
from typing import Optional

from llmjson.models import Candidate, CandidateSource, ParseOptions
from llmjson.scanner import Boundary, find_json_boundaries

# ```json\n...``` / ```\n...``` / ```json {...}``` / ```42```
# A language tag starts with a letter and is followed by whitespace.
_FENCE_RE = re.compile(
    r"```[ \t]*(?:([A-Za-z][A-Za-z0-9_+.-]*)(?=\s))?[ \t]*\r?\n?(.*?)```",
    re.DOTALL,
)
_INLINE_OBJECT_RE = re.compile(r"\{[^{}]*\}")
_INLINE_ARRAY_RE = re.compile(r"\[[^\[\]]*\]")
_JSON_START_RE = re.compile(r'(?:[\[{"\-0-9]|true\b|false\b|null\b)')


def _fenced(text: str, limit: int) -> list[Candidate]:
    tagged: list[Candidate] = []
    other: list[Candidate] = []
    for m in _FENCE_RE.finditer(text):
        body = m.group(2).strip()
        if not body:
            continue
        if (m.group(1) or "").lower() == "json":
            tagged.append(Candidate(body, CandidateSource.FENCED_JSON, m.start(2)))
        else:
            other.append(Candidate(body, CandidateSource.FENCED, m.start(2)))
    if tagged:
        return tagged[:limit]
    return other[:limit]


def _document(text: str) -> list[Candidate]:
    stripped = text.strip()
    if not stripped or not _JSON_START_RE.match(stripped):
        return []
    return [Candidate(stripped, CandidateSource.DOCUMENT, text.find(stripped))]


def _balanced(text: str, boundary: Optional[Boundary]) -> list[Candidate]:
    if boundary is None:
        return []
    span = text[boundary.start : boundary.end].strip()
    if not span:
        return []
    return [Candidate(span, CandidateSource.BALANCED, boundary.start)]


def _inline(
    text: str,
    pattern: re.Pattern[str],
    source: CandidateSource,
    limit: int,
    unclosed_from: Optional[int] = None,
) -> list[Candidate]:
    hits: list[Candidate] = []
    for m in pattern.finditer(text):
        if len(hits) >= limit:
            break
        if unclosed_from is not None and m.start() >= unclosed_from:
            break
        hits.append(Candidate(m.group(0), source, m.start()))
    return hits


def extract_candidates(text: str, options: ParseOptions | None = None) -> list[Candidate]:
    """Return deduplicated candidates in attempt order."""
    options = options or ParseOptions()
    limit = options.max_candidates

    boundary = find_json_boundaries(text)
    unclosed_from = boundary.start if boundary is not None and not boundary.closed else None

    found: list[Candidate] = []
    found += _fenced(text, limit)
    found += _document(text)
    found += _balanced(text, boundary)
    found += _inline(text, _INLINE_OBJECT_RE, CandidateSource.INLINE_OBJECT, limit, unclosed_from)
    found += _inline(text, _INLINE_ARRAY_RE, CandidateSource.INLINE_ARRAY, limit, unclosed_from)

    if options.prefer_first_match:
        found.sort(key=lambda c: (c.position, c.source.priority))
    else:
        found.sort(key=lambda c: (c.source.priority, c.position))

    seen: set[str] = set()
    unique: list[Candidate] = []
    for candidate in found:
        if candidate.text in seen:
            continue
        seen.add(candidate.text)
        unique.append(candidate)
    return unique


def extract(text: str, options: ParseOptions | None = None) -> list[str]:
    """Candidate texts only, in attempt order."""
    return [c.text for c in extract_candidates(text, options)]
