"""Runtime configuration.

All knobs come from environment variables (or a local ``.env`` file) and are
validated once by :class:`Settings`. Code obtains the instance through
:func:`get_settings`, which FastAPI routes also use as a dependency so tests
can override it.
"""

from __future__ import annotations

import json
import os
from typing import Any, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__: list[str] = ["DEFAULT_OCR_LANGUAGES", "Settings", "get_settings"]

# English, French, Spanish and Arabic, loaded together for every OCR call.
DEFAULT_OCR_LANGUAGES = "eng+fra+spa+ara"


def _parse_csv_str(v: str) -> List[str]:
    """Parse a comma-separated string into a list of values, stripping whitespace."""
    return [x.strip() for x in v.split(",") if x.strip()]


class Settings(BaseSettings):
    """Service settings; every field maps to the upper-cased env variable."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # List fields are coerced by validators below, not by JSON decoding.
        enable_decoding=False,
    )

    # --- service -----------------------------------------------------------
    debug: bool = False
    app_version: str = "v0.1.0"
    commit_sha: Optional[str] = None

    # --- API ---------------------------------------------------------------
    allowed_api_keys: List[str] = Field(
        default_factory=list,
        description="Accepted x-api-key values; empty disables authentication.",
    )
    max_file_size_mb: int = Field(10, gt=0)

    # --- OCR ---------------------------------------------------------------
    ocr_languages: str = DEFAULT_OCR_LANGUAGES
    ocr_page_seg_mode: int = Field(1, ge=0, le=13, description="Tesseract --psm")
    ocr_engine_mode: int = Field(3, ge=0, le=3, description="Tesseract --oem")
    ocr_timeout_seconds: Optional[float] = Field(
        120.0, description="Deadline for one OCR call; None waits indefinitely."
    )
    tesseract_cmd: Optional[str] = None

    # --- spreadsheets ------------------------------------------------------
    spreadsheet_per_sheet_ids: bool = Field(
        True, description="Restart row ids at 0 for each sheet of a workbook."
    )

    @field_validator("allowed_api_keys", mode="before")
    @classmethod
    def _coerce_allowed_api_keys(cls, v: Any) -> List[str]:
        """Accept a JSON array or a comma-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("["):
                try:
                    v = json.loads(text)
                except json.JSONDecodeError:
                    return _parse_csv_str(text)
            else:
                return _parse_csv_str(text)
        if isinstance(v, (list, tuple, set)):
            return [str(x).strip() for x in v if str(x).strip()]
        return v

    @field_validator("ocr_languages")
    @classmethod
    def validate_ocr_languages(cls, v: str) -> str:
        """Require ``lang[+lang...]`` with no empty pack names."""
        packs = [pack.strip() for pack in v.split("+")]
        if not all(packs):
            raise ValueError("OCR_LANGUAGES must look like 'eng' or 'eng+fra'")
        return "+".join(packs)

    @field_validator("ocr_timeout_seconds")
    @classmethod
    def validate_ocr_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("OCR_TIMEOUT_SECONDS must be > 0 when set")
        return v

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


_CACHED_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:  # noqa: D401 – accessor helper
    """Return the process-wide Settings.

    Under pytest (``PYTEST_CURRENT_TEST`` set) a fresh instance is built on
    every call so tests may change the environment between calls.
    """

    global _CACHED_SETTINGS  # noqa: PLW0603 – module-level singleton

    if "PYTEST_CURRENT_TEST" in os.environ:
        return Settings()

    if _CACHED_SETTINGS is None:
        _CACHED_SETTINGS = Settings()
    return _CACHED_SETTINGS


def _clear_settings_cache() -> None:
    global _CACHED_SETTINGS
    _CACHED_SETTINGS = None


get_settings.cache_clear = _clear_settings_cache  # type: ignore[attr-defined]
