from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from starextract.api.errors import add_exception_handlers, build_error_payload
from starextract.core.exceptions import (
    ExtractionCancelled,
    ImageDecodeError,
    OcrEngineError,
    UnsupportedFileType,
)

pytestmark = [pytest.mark.integration]


class DummyModel(BaseModel):
    name: str = Field(..., min_length=3)


@pytest.fixture
def client() -> TestClient:
    """A minimal app carrying the production exception handlers."""
    test_app = FastAPI()
    add_exception_handlers(test_app)

    @test_app.post("/validation")
    async def cause_validation_error(item: DummyModel):
        return {"name": item.name}

    @test_app.get("/http_exception")
    async def cause_http_exception():
        raise HTTPException(status_code=403, detail="Forbidden access")

    @test_app.get("/unsupported")
    async def cause_unsupported():
        raise UnsupportedFileType("application/zip")

    @test_app.get("/engine")
    async def cause_engine_error():
        raise OcrEngineError("tesseract exited with status 1: /tmp/xyz")

    @test_app.get("/decode")
    async def cause_decode_error():
        raise ImageDecodeError()

    @test_app.get("/cancelled")
    async def cause_cancelled():
        raise ExtractionCancelled()

    @test_app.get("/unhandled_exception")
    async def cause_unhandled_exception():
        raise ValueError("Something unexpected went wrong")

    # raise_server_exceptions=False lets the 500 handler answer.
    return TestClient(test_app, raise_server_exceptions=False)


def test_build_error_payload_shape() -> None:
    payload = build_error_payload("ocr_timeout", "Too slow.", "rid-1", {"x": 1})

    assert payload == {
        "error": {"code": "ocr_timeout", "message": "Too slow.", "request_id": "rid-1", "x": 1},
        "detail": "Too slow.",
    }


def test_validation_error_handler(client: TestClient) -> None:
    response = client.post("/validation", json={"name": "a"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "validation_error"
    assert error["message"] == "Invalid request parameters."
    assert error["details"][0]["loc"] == ["body", "name"]


def test_http_exception_handler(client: TestClient) -> None:
    response = client.get("/http_exception", headers={"X-Request-ID": "rid-403"})

    assert response.status_code == 403
    payload = response.json()
    assert payload["error"]["code"] == 403
    assert payload["error"]["request_id"] == "rid-403"
    assert payload["detail"] == "Forbidden access"


def test_unsupported_file_type_carries_media_type(client: TestClient) -> None:
    response = client.get("/unsupported")

    assert response.status_code == 415
    error = response.json()["error"]
    assert error["code"] == "unsupported_file_type"
    assert error["media_type"] == "application/zip"


def test_engine_error_hides_internal_detail(client: TestClient) -> None:
    response = client.get("/engine")

    assert response.status_code == 502
    payload = response.json()
    assert payload["error"]["code"] == "ocr_engine_error"
    assert payload["error"]["message"] == OcrEngineError.user_message
    assert "/tmp/xyz" not in response.text


@pytest.mark.parametrize(
    ("path", "status_code", "code"),
    [
        ("/decode", 422, "image_decode_error"),
        ("/cancelled", 409, "extraction_cancelled"),
    ],
)
def test_extraction_errors_map_to_status(
    client: TestClient, path: str, status_code: int, code: str
) -> None:
    response = client.get(path)

    assert response.status_code == status_code
    assert response.json()["error"]["code"] == code


def test_unhandled_exception_handler(client: TestClient) -> None:
    response = client.get("/unhandled_exception")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "internal_server_error"
