"""
Recovery Models — Shared data structures for JSON extraction and repair.

Defines:
  - ParseOptions: Per-call configuration (read-only)
  - ParseResult: The only value handed back to callers
  - Candidate: Ephemeral extraction hit used for ordering and dedup
  - CandidateSource: Which extraction strategy produced a candidate
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from llmjson.errors import InvalidInputError, ParseErrorKind


# ── Options ──────────────────────────────────────────────────────────


class ParseOptions(BaseModel):
    """
    Read-only configuration consumed once per `parse_llm_json` call.

    Keys may be given in snake_case or camelCase (`attemptFix`); unknown
    keys are ignored so older callers keep working.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    attempt_fix: bool = True
    max_candidates: int = Field(default=5, ge=1)
    prefer_first_match: bool = True
    allow_partial_recovery: bool = False
    # Partial recovery tuning
    partial_min_length: int = Field(default=1000, ge=0)
    partial_max_attempts: int = Field(default=3, ge=0)

    @classmethod
    def from_settings(cls) -> ParseOptions:
        """Build defaults from LLMJSON_* environment settings."""
        from llmjson.config import get_parser_settings

        settings = get_parser_settings()
        return cls(
            attempt_fix=settings.attempt_fix,
            max_candidates=settings.max_candidates,
            prefer_first_match=settings.prefer_first_match,
            allow_partial_recovery=settings.allow_partial_recovery,
        )

    @classmethod
    def coerce(cls, options: ParseOptions | Mapping[str, Any] | None) -> ParseOptions:
        """Accept an instance, a plain dict, or None (settings defaults)."""
        if options is None:
            return cls.from_settings()
        if isinstance(options, ParseOptions):
            return options
        if isinstance(options, Mapping):
            try:
                return cls.model_validate(dict(options))
            except ValidationError as exc:
                raise InvalidInputError(
                    "Invalid options", detail=str(exc)
                ) from exc
        raise InvalidInputError(
            f"Invalid options: expected a mapping, got {type(options).__name__}"
        )


# ── Result ───────────────────────────────────────────────────────────


class ParseResult(BaseModel):
    """
    Outcome of a single `parse_llm_json` call.

    On success `raw_json` is the exact string that decoded to `data`
    (post-repair when repair was needed). On failure both are None and
    `error` explains why.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )

    success: bool
    data: Any = None
    raw_json: str | None = None
    error: str | None = None
    error_kind: ParseErrorKind | None = None
    # Provenance
    strategy: str | None = None
    source: str | None = None
    candidates_tried: int = 0

    @model_validator(mode="after")
    def check_invariant(self) -> ParseResult:
        if self.success:
            if self.raw_json is None:
                raise ValueError("successful result requires raw_json")
            if self.error is not None:
                raise ValueError("successful result cannot carry an error")
        else:
            if self.data is not None or self.raw_json is not None:
                raise ValueError("failed result cannot carry data or raw_json")
            if not self.error:
                raise ValueError("failed result requires an error message")
        return self

    @classmethod
    def ok(
        cls,
        data: Any,
        raw_json: str,
        *,
        strategy: str,
        source: str | None = None,
        candidates_tried: int = 0,
    ) -> ParseResult:
        return cls(
            success=True,
            data=data,
            raw_json=raw_json,
            strategy=strategy,
            source=source,
            candidates_tried=candidates_tried,
        )

    @classmethod
    def fail(
        cls,
        kind: ParseErrorKind,
        message: str,
        *,
        candidates_tried: int = 0,
    ) -> ParseResult:
        kind = ParseErrorKind(kind)
        return cls(
            success=False,
            error=f"{kind.value}: {message}",
            error_kind=kind,
            candidates_tried=candidates_tried,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys (`rawJson`, `errorKind`, ...)."""
        return self.model_dump(by_alias=True)


# ── Candidates ───────────────────────────────────────────────────────


class CandidateSource(str, enum.Enum):
    """Extraction strategies, in priority order."""

    FENCED_JSON = "fenced_json"
    FENCED = "fenced"
    DOCUMENT = "document"
    BALANCED = "balanced"
    INLINE_OBJECT = "inline_object"
    INLINE_ARRAY = "inline_array"
    SEGMENT = "segment"

    @property
    def priority(self) -> int:
        return _PRIORITY[self]


_PRIORITY = {source: rank for rank, source in enumerate(CandidateSource)}


@dataclass(frozen=True)
class Candidate:
    """A substring of the input considered plausibly parseable as JSON."""

    text: str
    source: CandidateSource
    position: int
