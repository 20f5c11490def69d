"""
Parse Orchestrator — Recover a JSON value from arbitrary LLM output.

Usage:
    from llmjson import parse_llm_json

    result = parse_llm_json(reply_text, {"allowPartialRecovery": True})
    if result.success:
        breakdown = result.data
    else:
        logger.warning("llm_reply_unparseable", error=result.error)

Candidates come from the extractor (segment splitter as fallback). Each
candidate is run through an ordered list of decode strategies, each a
function ``(candidate, attempt) -> Decoded | None``; the first hit wins.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import structlog

from llmjson.errors import (
    DecoderError,
    InvalidInputError,
    LLMJsonError,
    NoCandidatesError,
    NoValidJsonError,
    ParseErrorKind,
    error_for_kind,
)
from llmjson.extractor import extract_candidates
from llmjson.models import Candidate, CandidateSource, ParseOptions, ParseResult
from llmjson.observability import record_outcome, trace_parse
from llmjson.repair import (
    RepairCache,
    is_nonempty_container,
    isolate_structure,
    partial_variants,
    repair_candidate,
)
from llmjson.segments import split_segments

logger = structlog.get_logger(__name__)

_PREVIEW_CHARS = 120


class _NonStandardConstant(ValueError):
    """NaN / Infinity / -Infinity: accepted by Python's json, not by JSON."""


def _reject_constant(name: str) -> Any:
    raise _NonStandardConstant(f"non-standard JSON constant {name!r}")


@dataclass(frozen=True)
class Decoded:
    """A successful decode and the exact text that produced it."""

    data: Any
    raw_json: str
    strategy: str


@dataclass
class _Attempt:
    """Per-call scratch state. Never shared between calls."""

    options: ParseOptions
    cache: RepairCache
    tried_candidates: set[str] = field(default_factory=set)
    failed_raw: set[str] = field(default_factory=set)
    decoder_errors: list[str] = field(default_factory=list)

    def decode(self, raw: str, strategy: str) -> Optional[Decoded]:
        raw = raw.strip()
        if not raw or raw in self.failed_raw:
            return None
        try:
            return Decoded(json.loads(raw, parse_constant=_reject_constant), raw, strategy)
        except (json.JSONDecodeError, _NonStandardConstant):
            self.failed_raw.add(raw)
            return None
        except (RecursionError, ValueError) as exc:
            # e.g. integer strings past the int conversion limit, deep nesting
            self.failed_raw.add(raw)
            self.decoder_errors.append(f"{type(exc).__name__}: {exc}")
            logger.warning(
                "decoder_exception",
                strategy=strategy,
                raw_length=len(raw),
                error=str(exc)[:_PREVIEW_CHARS],
            )
            return None


# ── Decode strategies ────────────────────────────────────────────────


def _direct(candidate: str, attempt: _Attempt) -> Optional[Decoded]:
    return attempt.decode(candidate, "direct")


def _repaired(candidate: str, attempt: _Attempt) -> Optional[Decoded]:
    if not attempt.options.attempt_fix:
        return None
    fixed = repair_candidate(candidate, attempt.options, attempt.cache)
    return attempt.decode(fixed, "repaired")


def _isolated(candidate: str, attempt: _Attempt) -> Optional[Decoded]:
    if not attempt.options.attempt_fix:
        return None
    span = isolate_structure(candidate)
    if span is None:
        return None
    decoded = attempt.decode(span, "isolated")
    if decoded is not None:
        return decoded
    fixed = repair_candidate(span, attempt.options, attempt.cache)
    return attempt.decode(fixed, "isolated")


def _partial(candidate: str, attempt: _Attempt) -> Optional[Decoded]:
    for variant in partial_variants(candidate, attempt.options):
        decoded = attempt.decode(variant, "partial")
        if decoded is None:
            continue
        if is_nonempty_container(decoded.data):
            return decoded
        # An empty shell is almost never the intended data.
        attempt.failed_raw.add(decoded.raw_json)
    return None


DecodeStrategy = Callable[[str, _Attempt], Optional[Decoded]]

DECODE_STRATEGIES: tuple[DecodeStrategy, ...] = (_direct, _repaired, _isolated, _partial)


def _first_success(
    candidates: list[Candidate], attempt: _Attempt
) -> Optional[tuple[Decoded, Candidate]]:
    for candidate in candidates:
        if candidate.text in attempt.tried_candidates:
            continue
        attempt.tried_candidates.add(candidate.text)
        for strategy in DECODE_STRATEGIES:
            decoded = strategy(candidate.text, attempt)
            if decoded is not None:
                logger.debug(
                    "candidate_decoded",
                    source=candidate.source.value,
                    position=candidate.position,
                    strategy=decoded.strategy,
                    raw_length=len(decoded.raw_json),
                )
                return decoded, candidate
    return None


def _segment_candidates(text: str) -> list[Candidate]:
    candidates = []
    offset = 0
    for segment in split_segments(text):
        position = text.find(segment, offset)
        if position == -1:
            position = offset
        candidates.append(Candidate(segment, CandidateSource.SEGMENT, position))
        offset = position + len(segment)
    return candidates


def _parse(
    text: Any,
    options: ParseOptions | Mapping[str, Any] | None,
    cache: RepairCache | None,
) -> ParseResult:
    if not isinstance(text, str) or not text:
        raise InvalidInputError("Invalid input: response must be a non-empty string")

    opts = ParseOptions.coerce(options)
    attempt = _Attempt(options=opts, cache=cache if cache is not None else RepairCache())

    candidates = extract_candidates(text, opts)
    if not candidates:
        candidates = _segment_candidates(text)
    if not candidates:
        raise NoCandidatesError("No JSON-like content found in the response")

    hit = _first_success(candidates, attempt)

    if hit is None and opts.attempt_fix:
        # Last resort: repair the whole response, then extract again.
        fixed_text = repair_candidate(text, opts, attempt.cache)
        logger.debug("whole_input_repair", changed=fixed_text != text.strip())
        hit = _first_success(extract_candidates(fixed_text, opts), attempt)

    tried = len(attempt.tried_candidates)
    if hit is None:
        if attempt.decoder_errors:
            raise DecoderError(
                f"Decoder raised unexpectedly on {len(attempt.decoder_errors)} "
                f"input(s) across {tried} candidate(s)",
                detail=attempt.decoder_errors[0],
                candidates_tried=tried,
            )
        raise NoValidJsonError(
            f"No valid JSON found after trying {tried} candidate(s)",
            candidates_tried=tried,
        )

    decoded, candidate = hit
    return ParseResult.ok(
        decoded.data,
        decoded.raw_json,
        strategy=decoded.strategy,
        source=candidate.source.value,
        candidates_tried=tried,
    )


def parse_llm_json(
    text: Any,
    options: ParseOptions | Mapping[str, Any] | None = None,
    *,
    cache: RepairCache | None = None,
) -> ParseResult:
    """
    Recover a JSON value from LLM output. Never raises.

    Args:
        text: Raw reply text. Anything other than a non-empty str fails
              with kind ``invalid-input``.
        options: ParseOptions, a dict (snake_case or camelCase keys), or
                 None for the LLMJSON_* environment defaults.
        cache: Optional RepairCache to reuse; a fresh one is built per call
               otherwise.

    Returns:
        ParseResult. On success ``raw_json`` is the exact string that
        decoded to ``data``; compare it with ``text`` to tell whether
        repair was applied.
    """
    text_length = len(text) if isinstance(text, str) else 0

    with trace_parse(text_length) as span:
        try:
            result = _parse(text, options, cache)
        except LLMJsonError as exc:
            result = ParseResult.fail(
                exc.kind, str(exc), candidates_tried=exc.candidates_tried
            )
        except Exception as exc:
            logger.exception("parse_crashed", input_length=text_length)
            result = ParseResult.fail(
                ParseErrorKind.DECODER_EXCEPTION,
                f"Unexpected {type(exc).__name__}: {exc}",
            )
        span.set_attribute("llmjson.success", result.success)
        span.set_attribute("llmjson.candidates_tried", result.candidates_tried)
        if result.strategy:
            span.set_attribute("llmjson.strategy", result.strategy)

    record_outcome(result)
    if not result.success:
        logger.warning(
            "parse_failed",
            error_kind=result.error_kind,
            error=result.error,
            input_length=text_length,
            preview=text[:_PREVIEW_CHARS] if isinstance(text, str) else None,
        )
    return result


parse = parse_llm_json


def load_llm_json(
    text: Any, options: ParseOptions | Mapping[str, Any] | None = None
) -> Any:
    """
    Like `parse_llm_json`, but return the data or raise.

    Raises the LLMJsonError subclass matching the failure kind
    (InvalidInputError, NoCandidatesError, NoValidJsonError, DecoderError).
    """
    result = parse_llm_json(text, options)
    if result.success:
        return result.data
    exc_class = error_for_kind(result.error_kind)
    raise exc_class(result.error, candidates_tried=result.candidates_tried)
