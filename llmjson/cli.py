#!/usr/bin/env python3
"""
llmjson CLI — Recover JSON from a saved LLM reply.

Usage:
    python -m llmjson reply.txt
    cat reply.txt | llmjson --allow-partial
    llmjson reply.txt --data-only --no-fix

Prints the ParseResult as JSON (camelCase keys). Exit code 0 on success,
1 when no JSON could be recovered, 2 on usage errors.
"""

import argparse
import json
import sys

from llmjson.config import get_parser_settings
from llmjson.logging import level_from_name, setup_logging
from llmjson.models import ParseOptions
from llmjson.parser import parse_llm_json
from llmjson.version import VERSION


def build_parser() -> argparse.ArgumentParser:
    settings = get_parser_settings()
    parser = argparse.ArgumentParser(
        prog="llmjson",
        description="Extract and repair JSON embedded in LLM output.",
    )
    parser.add_argument(
        "path",
        nargs="?",
        default="-",
        help="File holding the raw reply ('-' or omitted reads stdin)",
    )
    parser.add_argument(
        "--no-fix",
        dest="attempt_fix",
        action="store_false",
        default=settings.attempt_fix,
        help="Disable repair heuristics (trailing commas, auto-closing)",
    )
    parser.add_argument(
        "--max-candidates",
        type=int,
        default=settings.max_candidates,
        help="Cap on candidates per extraction strategy",
    )
    parser.add_argument(
        "--prefer-best",
        dest="prefer_first_match",
        action="store_false",
        default=settings.prefer_first_match,
        help="Rank by extraction strategy instead of position",
    )
    parser.add_argument(
        "--allow-partial",
        dest="allow_partial_recovery",
        action="store_true",
        default=settings.allow_partial_recovery,
        help="Allow truncate-and-reclose recovery on long inputs",
    )
    parser.add_argument(
        "--data-only",
        action="store_true",
        help="Print only the decoded data instead of the full result",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    parser.add_argument("--json-logs", action="store_true", default=settings.json_logs)
    parser.add_argument("--trace", action="store_true", help="Print spans to stdout")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def _read_input(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as fh:
        return fh.read()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=level_from_name(args.log_level), json_output=args.json_logs)

    if args.trace:
        from llmjson.observability import setup_tracing

        setup_tracing()

    if args.max_candidates < 1:
        print("Error: --max-candidates must be at least 1", file=sys.stderr)
        return 2

    try:
        text = _read_input(args.path)
    except OSError as e:
        print(f"Error: cannot read '{args.path}': {e}", file=sys.stderr)
        return 2

    options = ParseOptions(
        attempt_fix=args.attempt_fix,
        max_candidates=args.max_candidates,
        prefer_first_match=args.prefer_first_match,
        allow_partial_recovery=args.allow_partial_recovery,
    )
    result = parse_llm_json(text, options)

    if args.data_only:
        if result.success:
            print(json.dumps(result.data, indent=2, ensure_ascii=False))
        else:
            print(result.error, file=sys.stderr)
    else:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
