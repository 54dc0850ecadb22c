"""Cross-cutting pieces: settings, logging setup and the error taxonomy."""

from __future__ import annotations

from .config import Settings, get_settings  # noqa: F401
from .exceptions import ExtractionError  # noqa: F401

__all__: list[str] = ["ExtractionError", "Settings", "get_settings"]
