"""HTTP surface of Star Extract; ``uvicorn starextract.api:app`` also works."""

from __future__ import annotations

from .app import app, create_app  # noqa: F401

__all__: list[str] = ["app", "create_app"]
