"""Pytest configuration and shared fixtures."""

import pytest
from PIL import Image

from services.ocr_processor import BaseOCREngine
from services.pipeline import ExtractionPipeline
from services.renderers import BasePageRenderer


SAMPLE_IRP5_TEXT = """IRP5 EMPLOYEES TAX CERTIFICATE
SARS Income Tax Certificate
Year of Assessment: 2024
Employer Name: Acme Holdings (Pty) Ltd
Employee Number: 00123
Tax Reference Number: 0123456789

Income
Gross Remuneration 482,000.00 3601
Travel allowance 36,000.00 3703

Deductions
14,800.92 4005
24,600.00 3810

Tax
98,450.00 4102
1,771.56 3605
100,221.56 4149
9,000.00 4150
"""

# No code 3601 and no gross label: only the fallback search can find the salary
FALLBACK_IRP5_TEXT = """IRP5 Income Tax Certificate
Employer Name: Acme Holdings (Pty) Ltd
Employee Number: 00123
Annual package R482,000
98,450.00 4102
"""


class FakeRenderer(BasePageRenderer):
    """In-memory renderer; behaviour is configured through attributes"""

    def __init__(self, pages=1, sizes=None, page_texts=None):
        self.pages = pages
        self.sizes = sizes
        self.page_texts = page_texts or {}
        self.page_count_error = None
        self.render_errors = {}
        self.rendered = []
        self.embedded_calls = 0

    @property
    def name(self) -> str:
        return "fake"

    def page_count(self, pdf_bytes):
        if self.page_count_error:
            raise self.page_count_error
        return self.pages

    def page_sizes(self, pdf_bytes, max_pages):
        if self.sizes is not None:
            return self.sizes[:max_pages]
        return [(595.0, 842.0)] * min(self.pages, max_pages)

    def render(self, pdf_bytes, page_index, scale, timeout):
        error = self.render_errors.get(page_index, self.render_errors.get('all'))
        if error:
            raise error
        image = Image.new('RGB', (int(595 * scale), int(842 * scale)), 'white')
        self.rendered.append(page_index)
        return image

    def embedded_text(self, pdf_bytes, page_index):
        self.embedded_calls += 1
        return self.page_texts.get(page_index, "")


class FakeOcrEngine(BaseOCREngine):
    """Returns canned page texts in order; an Exception instance in the list is raised instead"""

    def __init__(self, texts=None):
        self.texts = list(texts or [])
        self.calls = 0

    @property
    def name(self) -> str:
        return "fake"

    def recognize(self, image, on_progress=None):
        assert image is not None
        result = self.texts[self.calls] if self.calls < len(self.texts) else ""
        self.calls += 1
        if on_progress:
            on_progress(0.0)
        if isinstance(result, Exception):
            raise result
        if on_progress:
            on_progress(1.0)
        return result


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_IRP5_TEXT


@pytest.fixture
def fallback_text() -> str:
    return FALLBACK_IRP5_TEXT


@pytest.fixture
def pdf_bytes() -> bytes:
    """Bytes that pass the upload pre-checks (PDF header, above minimum size)"""
    return b"%PDF-1.4\n" + b"0" * 2048


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def fake_ocr_engine() -> FakeOcrEngine:
    return FakeOcrEngine([SAMPLE_IRP5_TEXT])


@pytest.fixture
def make_ocr_engine():
    """Factory for OCR engines with custom page texts"""
    return FakeOcrEngine


@pytest.fixture
def pipeline(fake_renderer, fake_ocr_engine) -> ExtractionPipeline:
    return ExtractionPipeline(renderer=fake_renderer, ocr_engine=fake_ocr_engine)
