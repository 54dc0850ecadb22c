"""starextract/api/routes/__init__.py
###############################################################################
FastAPI **router package marker**.
###############################################################################
Each route module (``extract.py``, ``admin.py``) defines a module-level
``router``; registration happens in ``starextract.api.app``.
"""

from __future__ import annotations

__all__: list[str] = []
