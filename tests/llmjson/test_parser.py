"""
Tests for llmjson.parser — Parse Orchestrator.

Covers:
  - Valid JSON round-trips unchanged (objects, arrays, scalars)
  - Fenced, prose-embedded and nested payloads
  - Trailing-comma and unbalanced-brace repair, whole-input repair
  - Truncated input and NaN/Infinity never produce invented data
  - Failure kinds: invalid-input, no-candidates, no-valid-json, decoder-exception
  - Options: attempt_fix, prefer_first_match, allow_partial_recovery, dict/camelCase
  - Cache independence and concurrent callers
  - load_llm_json raising wrapper
"""

import json
import sys
from concurrent.futures import ThreadPoolExecutor

import pytest

from llmjson import (
    InvalidInputError,
    NoValidJsonError,
    ParseErrorKind,
    ParseOptions,
    RepairCache,
    extract,
    load_llm_json,
    parse,
    parse_llm_json,
)

VALID_DOCUMENTS = [
    '{"a": 1}',
    "[1, 2, 3]",
    '"text"',
    "42",
    "-3.5",
    "true",
    "null",
    "[]",
    "{}",
    '{"a": {"b": [1, {"c": null}]}, "d": "x"}',
    '"{not an object}"',
    '  {"padded": true}\n',
]


def _long_object(n: int = 60) -> str:
    return json.dumps({f"key_{i}": f"value number {i} with some padding text" for i in range(n)})


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Valid Input
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestValidJson:
    @pytest.mark.parametrize("doc", VALID_DOCUMENTS)
    def test_valid_json_decodes_as_is(self, doc):
        result = parse(doc)
        assert result.success is True
        assert result.data == json.loads(doc)
        assert result.error is None

    @pytest.mark.parametrize("doc", VALID_DOCUMENTS)
    def test_fenced_json_matches_bare(self, doc):
        wrapped = f"```json\n{doc}\n```"
        assert parse(wrapped).data == parse(doc).data

    @pytest.mark.parametrize(
        "text",
        [
            '{"a": 1,}',
            'Sure: {"a": [1, 2,]}',
            '{"a": {"b": 1}',
            "```json\n[1, 2\n```",
        ],
    )
    def test_raw_json_is_idempotent(self, text):
        result = parse(text)
        assert result.success
        assert parse(result.raw_json).data == result.data
        assert json.loads(result.raw_json) == result.data

    def test_embedded_in_prose(self):
        result = parse('Sure! Here is the result: {"x":5} Hope that helps.')
        assert result.data == {"x": 5}
        assert result.raw_json == '{"x":5}'

    def test_nested_object_in_prose_returned_whole(self):
        result = parse('Result: {"a": {"b": 1}} ok')
        assert result.data == {"a": {"b": 1}}

    def test_first_fenced_block_wins(self):
        text = 'First:\n```json\n{"id": 1}\n```\nSecond:\n```json\n{"id": 2}\n```'
        result = parse(text, ParseOptions(prefer_first_match=True))
        assert result.data == {"id": 1}
        assert result.source == "fenced_json"

    def test_prefer_best_skips_earlier_inline(self):
        text = 'inline {"a": 1} then\n```json\n{"b": 2}\n```'
        assert parse(text).data == {"a": 1}
        assert parse(text, {"preferFirstMatch": False}).data == {"b": 2}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Repair
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestRepair:
    def test_trailing_comma(self):
        result = parse('{"a":1,}')
        assert result.data == {"a": 1}
        assert result.raw_json == '{"a":1}'
        assert result.strategy == "repaired"

    def test_unbalanced_brace(self):
        result = parse('{"a":{"b":1}')
        assert result.success is True
        assert result.data["a"]["b"] == 1

    def test_truncated_fence(self):
        result = parse('```json\n{"items": [1, 2, 3')
        assert result.data == {"items": [1, 2, 3]}

    def test_trailing_prose_after_broken_object(self):
        result = parse('{"a": 1,} and that is all')
        assert result.data == {"a": 1}

    def test_raw_json_differs_from_input_when_repaired(self):
        text = '{"a": [1, 2,]}'
        result = parse(text)
        assert result.success
        assert result.raw_json != text

    def test_no_repair_without_attempt_fix(self):
        result = parse('{"a":1,}', {"attemptFix": False})
        assert result.success is False
        assert result.error_kind == ParseErrorKind.NO_VALID_JSON

    def test_whole_input_repair_as_last_resort(self):
        # The stray "{" leaves the first structure unclosed; the inline
        # object only surfaces once the whole reply is re-closed.
        text = 'Note: use { to start. Answer: {"a": 1}'
        assert '{"a": 1}' not in extract(text)

        result = parse(text)
        assert result.success is True
        assert result.data == {"a": 1}
        assert result.raw_json == '{"a": 1}'
        assert result.source == "inline_object"
        assert result.strategy == "direct"
        assert result.candidates_tried == 3


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Truncated Input
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestTruncatedInput:
    @pytest.mark.parametrize(
        "text",
        [
            '{"user": {"name": "A"}, "bio": "trunc',
            "Here you go: {",
            'Sure: {"result": {',
            '{"items": [',
            "1```{1{,",
        ],
    )
    def test_fails_without_partial_recovery(self, text):
        result = parse(text, {"allowPartialRecovery": False})
        assert result.success is False
        assert result.error_kind == ParseErrorKind.NO_VALID_JSON
        assert result.data is None

    def test_inner_object_not_returned_as_whole(self):
        result = parse('Result: {"user": {"name": "A"}, "bio": "trunc')
        assert result.success is False


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Partial Recovery
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestPartialRecovery:
    def _truncated(self) -> str:
        full = _long_object()
        return full[: full.index("value number 59") + 5]  # mid-string

    def test_gate_off_fails(self):
        result = parse(self._truncated(), {"allowPartialRecovery": False})
        assert result.success is False
        assert result.data is None

    def test_gate_on_recovers_non_empty_prefix(self):
        original = json.loads(_long_object())
        result = parse(self._truncated(), {"allowPartialRecovery": True})
        assert result.success is True
        assert result.strategy == "partial"
        assert isinstance(result.data, dict) and result.data
        for key, value in result.data.items():
            assert original[key] == value

    def test_empty_shell_is_never_a_success(self):
        text = '{"payload": "' + "x" * 1500
        result = parse(text, {"allowPartialRecovery": True})
        assert result.success is False
        assert result.data is None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Failures
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestFailures:
    @pytest.mark.parametrize("text", ["", None, 123, b'{"a": 1}'])
    def test_invalid_input(self, text):
        result = parse(text)
        assert result.success is False
        assert result.error_kind == ParseErrorKind.INVALID_INPUT
        assert result.data is None and result.raw_json is None
        assert result.error

    def test_garbage(self):
        result = parse("not json at all")
        assert result.success is False
        assert result.error_kind == ParseErrorKind.NO_VALID_JSON
        assert "1 candidate" in result.error
        assert result.candidates_tried == 1

    def test_whitespace_only_has_no_candidates(self):
        result = parse("   \n\t ")
        assert result.error_kind == ParseErrorKind.NO_CANDIDATES

    @pytest.mark.parametrize(
        "text",
        [
            "NaN",
            "Infinity",
            "-Infinity",
            '{"score": NaN}',
            'Result: {"ratio": Infinity}',
            "[1, -Infinity]",
        ],
    )
    def test_non_standard_constants_rejected(self, text):
        result = parse(text)
        assert result.success is False
        assert result.error_kind == ParseErrorKind.NO_VALID_JSON

    def test_constant_names_inside_strings_are_fine(self):
        assert parse('{"label": "NaN"}').data == {"label": "NaN"}

    def test_invalid_options(self):
        result = parse('{"a": 1}', {"maxCandidates": 0})
        assert result.error_kind == ParseErrorKind.INVALID_INPUT

    def test_options_of_wrong_type(self):
        result = parse('{"a": 1}', ["attemptFix"])
        assert result.error_kind == ParseErrorKind.INVALID_INPUT

    @pytest.mark.skipif(
        not hasattr(sys, "get_int_max_str_digits"),
        reason="integer string conversion limit not available",
    )
    def test_decoder_exception(self):
        result = parse('{"n": ' + "9" * 5000 + "}")
        assert result.success is False
        assert result.error_kind == ParseErrorKind.DECODER_EXCEPTION

    def test_error_message_names_kind(self):
        assert parse("").error.startswith("invalid-input: ")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
#  Options, Cache, Concurrency
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class TestOptionsAndCache:
    def test_unknown_option_keys_ignored(self):
        result = parse('{"a": 1}', {"someFutureFlag": True, "attempt_fix": True})
        assert result.data == {"a": 1}

    def test_env_defaults_used_without_options(self, monkeypatch):
        monkeypatch.setenv("LLMJSON_ATTEMPT_FIX", "false")
        assert parse('{"a":1,}').success is False

    @pytest.mark.parametrize(
        "text",
        ['{"a":1,}', '{"a":{"b":1}', "not json", 'x {"y": [1,]} z', '[{"a": 1},'],
    )
    def test_cache_does_not_change_results(self, text):
        with_cache = parse_llm_json(text)
        without = parse_llm_json(text, cache=RepairCache(maxsize=0))
        assert with_cache.to_dict() == without.to_dict()

    def test_injected_cache_is_used(self):
        cache = RepairCache()
        parse_llm_json('{"a":1,}', cache=cache)
        assert len(cache) >= 1

    def test_concurrent_callers(self):
        inputs = ['{"a":1,}', '[1, 2', "nothing", 'ok {"k": "v"}'] * 10
        expected = [parse(t).to_dict() for t in inputs]
        with ThreadPoolExecutor(max_workers=8) as pool:
            got = [r.to_dict() for r in pool.map(parse, inputs)]
        assert got == expected

    def test_to_dict_uses_camel_case(self):
        d = parse('{"a": 1}').to_dict()
        assert d["rawJson"] == '{"a": 1}'
        assert d["success"] is True
        assert "errorKind" in d


class TestLoadLlmJson:
    def test_returns_data(self):
        assert load_llm_json('```json\n{"a": 1}\n```') == {"a": 1}

    def test_raises_no_valid_json(self):
        with pytest.raises(NoValidJsonError) as exc_info:
            load_llm_json("not json at all")
        assert exc_info.value.retryable is True
        assert exc_info.value.candidates_tried == 1

    def test_raises_invalid_input(self):
        with pytest.raises(InvalidInputError):
            load_llm_json("")
