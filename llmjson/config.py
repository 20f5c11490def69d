"""
Parser Configuration — Environment-driven defaults for JSON recovery.

The settings manage:
  - Default ParseOptions used when a caller passes no options
  - Logging level / format for the CLI
  - Whether parse outcomes are exported as metrics
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ParserSettings(BaseSettings):
    """Process-wide defaults. Per-call overrides are passed as ParseOptions."""

    model_config = SettingsConfigDict(
        env_prefix="LLMJSON_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Recovery defaults ─────────────────────────────────────────────
    attempt_fix: bool = True
    max_candidates: int = Field(default=5, ge=1)
    prefer_first_match: bool = True
    allow_partial_recovery: bool = False

    # ── Logging ───────────────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool = False

    # ── Observability ─────────────────────────────────────────────────
    metrics_enabled: bool = True


@lru_cache
def get_parser_settings() -> ParserSettings:
    """Singleton accessor — parsed once, cached until cache_clear()."""
    return ParserSettings()
