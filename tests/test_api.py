"""Tests for the FastAPI endpoints."""

import pytest
from fastapi.testclient import TestClient

import main
from services.pipeline import ExtractionPipeline
from services.renderers import PasswordRequiredError


@pytest.fixture
def test_client() -> TestClient:
    return TestClient(main.app)


@pytest.fixture
def use_fakes(monkeypatch, fake_renderer, make_ocr_engine, sample_text):
    """Every request gets its own pipeline backed by the fake renderer and OCR engine."""
    monkeypatch.setattr(
        main, "create_pipeline",
        lambda: ExtractionPipeline(fake_renderer, make_ocr_engine([sample_text]))
    )
    return fake_renderer


class TestHealth:
    """Test health endpoints."""

    @pytest.mark.parametrize("path", ["/", "/api/health"])
    def test_health(self, test_client, path):
        response = test_client.get(path)
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["version"] == main.VERSION
        assert isinstance(body["ocr_available"], bool)


class TestExtract:
    """Test single file extraction."""

    def test_extract_success(self, test_client, use_fakes, pdf_bytes):
        response = test_client.post(
            "/api/extract",
            files={"file": ("irp5.pdf", pdf_bytes, "application/pdf")},
        )
        assert response.status_code == 200
        body = response.json()

        assert body["success"] is True
        assert body["data"]["gross_remuneration"] == 482000.0
        assert body["data"]["tax_year"] == "2024"
        assert body["confidence"] == 100
        assert body["progress"][-1]["percent"] == 100
        assert body["error_kind"] is None

    def test_extract_failure(self, test_client, use_fakes, pdf_bytes):
        use_fakes.page_count_error = PasswordRequiredError("locked")
        response = test_client.post(
            "/api/extract",
            files={"file": ("irp5.pdf", pdf_bytes, "application/pdf")},
        )
        body = response.json()

        assert body["success"] is False
        assert body["error_kind"] == "password_protected"
        assert body["data"] is None

    def test_extract_wrong_type(self, test_client, use_fakes, pdf_bytes):
        response = test_client.post(
            "/api/extract",
            files={"file": ("irp5.png", pdf_bytes, "image/png")},
        )
        body = response.json()
        assert body["success"] is False
        assert body["error_kind"] == "invalid_input"


class TestExtractBatch:
    """Test batch extraction."""

    def test_batch_mixed_results(self, test_client, use_fakes, pdf_bytes):
        response = test_client.post(
            "/api/extract-batch",
            files=[
                ("files", ("first.pdf", pdf_bytes, "application/pdf")),
                ("files", ("second.pdf", pdf_bytes, "application/pdf")),
                ("files", ("notes.txt", b"hello", "text/plain")),
            ],
        )
        assert response.status_code == 200
        body = response.json()

        assert body["total_files"] == 3
        assert body["successful"] == 2
        assert body["failed"] == 1
        results = {r["filename"]: r for r in body["results"]}
        assert results["first.pdf"]["data"]["gross_remuneration"] == 482000.0
        assert results["notes.txt"]["error_kind"] == "invalid_input"
