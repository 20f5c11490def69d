"""
Observability — OpenTelemetry tracing + Prometheus metrics for parse calls.

Provides:
- One span per `parse_llm_json` call (`llmjson.parse`)
- Outcome counter and candidates-attempted histogram
- Console tracing setup for local debugging (CLI `--trace`)

Nothing here feeds back into parsing; disabling metrics never changes a
result.
"""

import time
from contextlib import contextmanager
from typing import Generator

import structlog
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

from llmjson.models import ParseResult

logger = structlog.get_logger(__name__)


# ── OpenTelemetry ────────────────────────────────────────────────────


def setup_tracing(service_name: str | None = None) -> trace.Tracer:
    """Install a console-exporting tracer provider (local debugging only).

    Embedding applications normally install their own provider; the
    library then reports into it through `trace.get_tracer`.
    """
    from llmjson.version import APP_NAME, VERSION

    resource = Resource.create(
        {"service.name": service_name or APP_NAME, "service.version": VERSION}
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)
    logger.info("otel_tracing_initialized", service=service_name or APP_NAME)
    return trace.get_tracer(__name__)


@contextmanager
def trace_parse(text_length: int, **attributes) -> Generator:
    """
    Context manager wrapping one parse call in a span.

    Usage:
        with trace_parse(len(text), attempt_fix=True) as span:
            result = ...
            span.set_attribute("llmjson.success", result.success)
    """
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        "llmjson.parse",
        attributes={
            "llmjson.input_length": text_length,
            **{f"llmjson.{k}": str(v) for k, v in attributes.items()},
        },
    ) as span:
        start = time.monotonic()
        try:
            yield span
        finally:
            latency = (time.monotonic() - start) * 1000
            span.set_attribute("llmjson.latency_ms", round(latency, 3))


# ── Metrics ──────────────────────────────────────────────────────────

PARSE_CALLS = Counter(
    "parse_total",
    "Total parse_llm_json calls by outcome",
    ["outcome", "strategy"],
    namespace="llmjson",
)

CANDIDATES_ATTEMPTED = Histogram(
    "candidates_attempted",
    "Distinct candidates tried per parse call",
    buckets=[0, 1, 2, 3, 5, 8, 13, 21],
    namespace="llmjson",
)


def record_outcome(result: ParseResult) -> None:
    """Feed a finished result into the Prometheus metrics."""
    from llmjson.config import get_parser_settings

    if not get_parser_settings().metrics_enabled:
        return
    outcome = "success" if result.success else (result.error_kind or "failure")
    PARSE_CALLS.labels(outcome=outcome, strategy=result.strategy or "none").inc()
    CANDIDATES_ATTEMPTED.observe(result.candidates_tried)


def get_metrics() -> bytes:
    """Generate Prometheus metrics for scraping."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
