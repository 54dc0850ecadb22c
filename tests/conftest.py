# ruff: noqa: E402
from __future__ import annotations

import sys
from pathlib import Path

# Ensure repository root is first on sys.path
_repo_root: Path = Path(__file__).resolve().parent.parent  # tests/ -> repo root
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

from io import BytesIO
from typing import Any, Callable, List, Optional, Sequence, Tuple

import pytest
from openpyxl import Workbook
from PIL import Image


class MockSettings:  # Does NOT inherit from real Settings
    """Mock Settings class for testing."""

    debug: bool = False
    app_version: str = "v_test"
    commit_sha: Optional[str] = None

    allowed_api_keys: List[str] = []

    max_file_size_mb: int = 10

    ocr_languages: str = "eng+fra+spa+ara"
    ocr_page_seg_mode: int = 1
    ocr_engine_mode: int = 3
    ocr_timeout_seconds: Optional[float] = 30.0
    tesseract_cmd: Optional[str] = None

    spreadsheet_per_sheet_ids: bool = True

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with optional overrides for any attribute."""
        for key, value in self.__class__.__dict__.items():
            if not key.startswith("__") and not callable(value) and not isinstance(
                value, property
            ):
                setattr(self, key, value)
        # Fresh list per instance so tests cannot leak keys into each other.
        self.allowed_api_keys = []
        for key, value in kwargs.items():
            setattr(self, key, value)

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


@pytest.fixture
def mock_settings() -> MockSettings:
    """Provide a plain MockSettings instance."""
    return MockSettings()


@pytest.fixture(autouse=True)
def _disable_dotenv(monkeypatch: pytest.MonkeyPatch) -> None:
    """Prevent the application Settings class from reading a developer *.env* file."""

    from starextract.core.config import Settings  # Imported here to avoid circularity

    monkeypatch.setitem(Settings.model_config, "env_file", None)
    monkeypatch.delenv("ALLOWED_API_KEYS", raising=False)


# ---------------------------------------------------------------------------
# In-memory file builders
# ---------------------------------------------------------------------------

Pixel = Tuple[int, int, int, int]


def build_png(pixels: Sequence[Pixel], *, width: Optional[int] = None) -> bytes:
    """Return PNG bytes for an RGBA image whose pixels are given row-major."""
    width = width or len(pixels)
    height = len(pixels) // width
    image = Image.new("RGBA", (width, height))
    image.putdata(list(pixels))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def build_xlsx(sheets: Sequence[Tuple[str, Sequence[Sequence[Any]]]]) -> bytes:
    """Return ``.xlsx`` bytes with one worksheet per ``(title, rows)`` pair."""
    workbook = Workbook()
    workbook.remove(workbook.active)
    for title, rows in sheets:
        worksheet = workbook.create_sheet(title=title)
        for row in rows:
            worksheet.append(list(row))
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return build_png


@pytest.fixture
def xlsx_factory() -> Callable[..., bytes]:
    return build_xlsx
