"""
llmjson — Best-effort JSON recovery for LLM output.

Finds JSON inside prose and fenced code blocks, repairs trailing commas
and unbalanced brackets, and reports a structured ParseResult instead of
raising.
"""

from llmjson.errors import (
    DecoderError,
    InvalidInputError,
    LLMJsonError,
    NoCandidatesError,
    NoValidJsonError,
    ParseErrorKind,
)
from llmjson.extractor import extract, extract_candidates
from llmjson.models import Candidate, CandidateSource, ParseOptions, ParseResult
from llmjson.parser import load_llm_json, parse, parse_llm_json
from llmjson.repair import RepairCache, repair_candidate
from llmjson.scanner import Boundary, find_json_boundaries
from llmjson.segments import split_segments
from llmjson.version import VERSION

__all__ = [
    # Entry points
    "parse_llm_json",
    "parse",
    "load_llm_json",
    # Models
    "ParseOptions",
    "ParseResult",
    "Candidate",
    "CandidateSource",
    "RepairCache",
    # Components
    "extract",
    "extract_candidates",
    "find_json_boundaries",
    "Boundary",
    "split_segments",
    "repair_candidate",
    # Errors
    "ParseErrorKind",
    "LLMJsonError",
    "InvalidInputError",
    "NoCandidatesError",
    "NoValidJsonError",
    "DecoderError",
    "VERSION",
]
