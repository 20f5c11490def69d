"""
Single source of truth for the package version.

Resolved from the installed distribution's metadata; a source tree that
was never installed reports ``0.0.0``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["VERSION", "APP_NAME"]

APP_NAME = "llmjson"

try:
    VERSION = version(APP_NAME)
except PackageNotFoundError:
    VERSION = "0.0.0"
