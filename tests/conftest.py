import pytest
import structlog
from opentelemetry import trace

from llmjson.config import get_parser_settings


@pytest.fixture(autouse=True)
def disable_tracing():
    """Install a quiet tracer provider so spans never print during tests."""
    from opentelemetry.sdk.trace import TracerProvider

    trace.set_tracer_provider(TracerProvider())
    yield


@pytest.fixture(autouse=True)
def fresh_settings():
    """Re-read LLMJSON_* env vars per test (monkeypatch.setenv friendly)."""
    get_parser_settings.cache_clear()
    yield
    get_parser_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_structlog():
    """CLI tests configure structlog against captured streams; undo that."""
    yield
    structlog.reset_defaults()
