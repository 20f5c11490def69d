"""
Structured Error Taxonomy — Typed exceptions for LLM JSON recovery.

Design principles:
  - Every error carries `kind` + `error_code` + `retryable` for automated decisions
  - `kind` is the public failure category reported on a failed ParseResult
  - Exceptions never escape `parse_llm_json`; they are converted at its boundary
  - Structured logging friendly: all errors serialize cleanly to JSON
"""

from __future__ import annotations

import enum

__all__ = [
    "ParseErrorKind",
    # Base
    "LLMJsonError",
    # Input layer
    "InvalidInputError",
    # Extraction layer
    "NoCandidatesError",
    # Decode layer
    "NoValidJsonError",
    "DecoderError",
    "error_for_kind",
]


class ParseErrorKind(str, enum.Enum):
    """Failure categories reported on ``ParseResult.error_kind``."""

    INVALID_INPUT = "invalid-input"
    NO_CANDIDATES = "no-candidates"
    NO_VALID_JSON = "no-valid-json"
    DECODER_EXCEPTION = "decoder-exception"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Base
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class LLMJsonError(Exception):
    """Root exception for JSON recovery.

    Attributes:
        kind: Public failure category.
        retryable: If True, asking the model again may produce usable output.
        error_code: Machine-readable code for dashboards and alerting.
    """

    kind: ParseErrorKind = ParseErrorKind.DECODER_EXCEPTION
    retryable: bool = False
    error_code: str = "LLMJSON_ERROR"

    def __init__(
        self, message: str, *, detail: str | None = None, candidates_tried: int = 0
    ):
        self.detail = detail
        self.candidates_tried = candidates_tried
        super().__init__(message)

    def to_dict(self) -> dict:
        """Serialize for structured logging."""
        return {
            "error_code": self.error_code,
            "kind": self.kind.value,
            "message": str(self),
            "detail": self.detail,
            "retryable": self.retryable,
            "candidates_tried": self.candidates_tried,
        }


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Input Layer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class InvalidInputError(LLMJsonError):
    """Input is missing, empty, not a string, or the options are malformed."""

    kind = ParseErrorKind.INVALID_INPUT
    error_code = "INVALID_INPUT"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Extraction Layer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class NoCandidatesError(LLMJsonError):
    """No extraction strategy produced anything to try."""

    kind = ParseErrorKind.NO_CANDIDATES
    retryable = True
    error_code = "NO_CANDIDATES"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Decode Layer
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class NoValidJsonError(LLMJsonError):
    """Candidates were tried but none decoded, even after repair."""

    kind = ParseErrorKind.NO_VALID_JSON
    retryable = True
    error_code = "NO_VALID_JSON"


class DecoderError(LLMJsonError):
    """The JSON decoder failed in an unexpected way (not a plain syntax error)."""

    kind = ParseErrorKind.DECODER_EXCEPTION
    error_code = "DECODER_EXCEPTION"


_BY_KIND: dict[ParseErrorKind, type[LLMJsonError]] = {
    ParseErrorKind.INVALID_INPUT: InvalidInputError,
    ParseErrorKind.NO_CANDIDATES: NoCandidatesError,
    ParseErrorKind.NO_VALID_JSON: NoValidJsonError,
    ParseErrorKind.DECODER_EXCEPTION: DecoderError,
}


def error_for_kind(kind: ParseErrorKind | str) -> type[LLMJsonError]:
    """Map a failure kind back to its exception class."""
    return _BY_KIND[ParseErrorKind(kind)]
