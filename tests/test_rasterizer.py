"""Tests for the rasterization adapter."""

import pytest

from services.errors import ErrorKind, ExtractionError
from services.rasterizer import Rasterizer
from services.renderers import DocumentReadError, PasswordRequiredError, RenderTimeoutError


class TestRasterizer:
    """Test page rendering, skipping and failure mapping."""

    def test_renders_at_most_three_pages(self, fake_renderer, pdf_bytes):
        fake_renderer.pages = 5
        surfaces = Rasterizer(fake_renderer).rasterize(pdf_bytes)

        assert [s.page_index for s in surfaces] == [0, 1, 2]
        assert fake_renderer.rendered == [0, 1, 2]
        assert surfaces[0].width == int(595 * 1.5)

    def test_password_detected_before_rendering(self, fake_renderer, pdf_bytes):
        fake_renderer.page_count_error = PasswordRequiredError("locked")
        with pytest.raises(ExtractionError) as exc_info:
            Rasterizer(fake_renderer).rasterize(pdf_bytes)

        assert exc_info.value.kind == ErrorKind.PASSWORD_PROTECTED
        assert fake_renderer.rendered == []

    def test_unreadable_document_is_corrupted(self, fake_renderer, pdf_bytes):
        fake_renderer.page_count_error = DocumentReadError("bad xref")
        with pytest.raises(ExtractionError) as exc_info:
            Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert exc_info.value.kind == ErrorKind.CORRUPTED_DOCUMENT

    def test_zero_pages(self, fake_renderer, pdf_bytes):
        fake_renderer.pages = 0
        with pytest.raises(ExtractionError) as exc_info:
            Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert exc_info.value.kind == ErrorKind.NO_RENDERABLE_PAGES

    def test_failed_page_is_skipped(self, fake_renderer, pdf_bytes):
        fake_renderer.pages = 3
        fake_renderer.render_errors[1] = DocumentReadError("page 2 broken")
        surfaces = Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert [s.page_index for s in surfaces] == [0, 2]

    def test_unexpected_page_error_is_skipped(self, fake_renderer, pdf_bytes):
        fake_renderer.pages = 2
        fake_renderer.render_errors[0] = OSError("cannot identify image file")
        surfaces = Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert [s.page_index for s in surfaces] == [1]

    def test_every_page_failing_unexpectedly(self, fake_renderer, pdf_bytes):
        fake_renderer.render_errors['all'] = ValueError("bad image data")
        with pytest.raises(ExtractionError) as exc_info:
            Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert exc_info.value.kind == ErrorKind.NO_RENDERABLE_PAGES

    def test_invalid_page_size_is_skipped(self, pdf_bytes, fake_renderer):
        fake_renderer.pages = 2
        fake_renderer.sizes = [(0.0, 842.0), (595.0, 842.0)]
        surfaces = Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert [s.page_index for s in surfaces] == [1]

    def test_all_pages_timed_out(self, fake_renderer, pdf_bytes):
        fake_renderer.pages = 2
        fake_renderer.render_errors['all'] = RenderTimeoutError("too slow")
        with pytest.raises(ExtractionError) as exc_info:
            Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert exc_info.value.kind == ErrorKind.RENDER_TIMEOUT

    def test_no_page_rendered(self, fake_renderer, pdf_bytes):
        fake_renderer.render_errors['all'] = DocumentReadError("broken")
        with pytest.raises(ExtractionError) as exc_info:
            Rasterizer(fake_renderer).rasterize(pdf_bytes)
        assert exc_info.value.kind == ErrorKind.NO_RENDERABLE_PAGES

    def test_release_closes_image(self, fake_renderer, pdf_bytes):
        surface = Rasterizer(fake_renderer).rasterize(pdf_bytes)[0]
        surface.release()
        assert surface.released
        surface.release()
