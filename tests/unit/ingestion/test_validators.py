from __future__ import annotations

from io import BytesIO
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException
from starlette.datastructures import UploadFile

from starextract.ingestion.validators import validate_upload
from tests.conftest import MockSettings


def _build_upload(
    payload: bytes,
    content_type: str | None = "image/png",
    filename: str | None = "scan.png",
) -> UploadFile:  # noqa: D401 – tiny factory
    """Return an *UploadFile* mock wrapping **payload**."""
    upload_file_mock = MagicMock(spec=UploadFile)
    upload_file_mock.filename = filename
    upload_file_mock.file = BytesIO(payload)
    upload_file_mock.content_type = content_type
    return upload_file_mock


@pytest.fixture
def mock_settings() -> MockSettings:
    return MockSettings(max_file_size_mb=1)


def test_valid_upload_returns_size(mock_settings: MockSettings) -> None:
    assert validate_upload(_build_upload(b"\x89PNG data"), settings=mock_settings) == 9


def test_size_check_restores_file_position(mock_settings: MockSettings) -> None:
    upload = _build_upload(b"0123456789")
    upload.file.seek(3)

    validate_upload(upload, settings=mock_settings)

    assert upload.file.tell() == 3


def test_empty_upload_is_rejected(mock_settings: MockSettings) -> None:
    with pytest.raises(HTTPException) as exc_info:
        validate_upload(_build_upload(b""), settings=mock_settings)

    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Uploaded file is empty."


def test_oversized_upload_is_rejected(mock_settings: MockSettings) -> None:
    payload = b"x" * (mock_settings.max_file_size_bytes + 1)

    with pytest.raises(HTTPException) as exc_info:
        validate_upload(_build_upload(payload), settings=mock_settings)

    assert exc_info.value.status_code == 413
    assert "exceeds the limit of 1 MB" in exc_info.value.detail


def test_missing_content_type_is_rejected(mock_settings: MockSettings) -> None:
    with pytest.raises(HTTPException) as exc_info:
        validate_upload(_build_upload(b"data", content_type=None), settings=mock_settings)

    assert exc_info.value.status_code == 415


def test_unsupported_media_type_is_left_to_the_pipeline(
    mock_settings: MockSettings,
) -> None:
    """Validation does not judge support; dispatch does."""
    validate_upload(
        _build_upload(b"hello", content_type="text/plain", filename="a.txt"),
        settings=mock_settings,
    )


def test_unreadable_file_object_is_rejected(mock_settings: MockSettings) -> None:
    upload = _build_upload(b"data")
    upload.file = MagicMock()
    upload.file.tell.side_effect = OSError("disk error")

    with pytest.raises(HTTPException) as exc_info:
        validate_upload(upload, settings=mock_settings)

    assert exc_info.value.status_code == 400
