"""
Rasterization Adapter
Renders the first pages of an uploaded PDF into images for OCR, skipping pages that fail or hang
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from PIL import Image

from config.extraction_config import EXTRACTION_CONFIG
from services.errors import ErrorKind, ExtractionError
from services.renderers import (
    BasePageRenderer,
    DocumentReadError,
    PasswordRequiredError,
    PopplerRenderer,
    RenderTimeoutError,
)

logger = logging.getLogger(__name__)


@dataclass
class RasterSurface:
    """One rendered page; the pixel buffer is released right after OCR"""
    page_index: int
    width: int
    height: int
    image: Optional[Image.Image]

    @property
    def released(self) -> bool:
        return self.image is None

    def release(self) -> None:
        if self.image is not None:
            self.image.close()
            self.image = None


class Rasterizer:
    """Converts PDF bytes into RasterSurfaces, bounded by page count and per-page timeout"""

    def __init__(self, renderer: BasePageRenderer = None, config: Dict = None):
        """
        Initialize rasterizer

        Args:
            renderer: Rendering engine (PopplerRenderer if not provided)
            config: Configuration dict (uses EXTRACTION_CONFIG if not provided)
        """
        self.config = config or EXTRACTION_CONFIG
        settings = self.config['rendering']
        self.max_pages = settings['max_pages']
        self.scale = settings['scale']
        self.timeout = settings['page_timeout_seconds']
        self.renderer = renderer or PopplerRenderer(base_dpi=settings['base_dpi'])

    def rasterize(self, pdf_bytes: bytes) -> List[RasterSurface]:
        """
        Render up to max_pages pages

        Returns:
            List of RasterSurface in page order (never empty)

        Raises:
            ExtractionError: password_protected, corrupted_document,
                no_renderable_pages or render_timeout
        """
        try:
            num_pages = self.renderer.page_count(pdf_bytes)
        except PasswordRequiredError as e:
            raise ExtractionError(
                ErrorKind.PASSWORD_PROTECTED,
                "PDF is password protected. Please provide an unprotected PDF.",
            ) from e
        except DocumentReadError as e:
            logger.error(f"Could not open PDF with {self.renderer.name}: {e}")
            raise ExtractionError(
                ErrorKind.CORRUPTED_DOCUMENT,
                "PDF file appears to be corrupted or invalid.",
            ) from e

        if num_pages <= 0:
            raise ExtractionError(ErrorKind.NO_RENDERABLE_PAGES, "PDF contains no pages.")

        max_pages = min(num_pages, self.max_pages)
        logger.info(f"PDF loaded with {num_pages} pages, rendering {max_pages}")

        try:
            sizes = self.renderer.page_sizes(pdf_bytes, max_pages)
        except PasswordRequiredError as e:
            raise ExtractionError(
                ErrorKind.PASSWORD_PROTECTED,
                "PDF is password protected. Please provide an unprotected PDF.",
            ) from e
        except DocumentReadError as e:
            logger.error(f"Could not read page geometry: {e}")
            raise ExtractionError(
                ErrorKind.CORRUPTED_DOCUMENT,
                "PDF file appears to be corrupted or invalid.",
            ) from e

        surfaces: List[RasterSurface] = []
        try:
            attempted, timed_out = self._render_pages(pdf_bytes, sizes, max_pages, surfaces)
        except Exception:
            self._release_all(surfaces)
            raise

        if not surfaces:
            if attempted and timed_out == attempted:
                raise ExtractionError(
                    ErrorKind.RENDER_TIMEOUT,
                    "PDF processing timed out. The file may be too complex.",
                )
            raise ExtractionError(
                ErrorKind.NO_RENDERABLE_PAGES,
                "Failed to convert PDF to image for processing. Please try a different PDF file.",
            )

        return surfaces

    def _render_pages(self, pdf_bytes: bytes, sizes, max_pages: int,
                      surfaces: List[RasterSurface]) -> Tuple[int, int]:
        """Render pages into surfaces; returns (attempted, timed_out) counts"""
        timed_out = 0
        attempted = 0

        for page_index in range(max_pages):
            page_number = page_index + 1
            if page_index >= len(sizes):
                logger.warning(f"No geometry for page {page_number}, skipping")
                continue

            width = sizes[page_index][0] * self.scale
            height = sizes[page_index][1] * self.scale
            if width <= 0 or height <= 0:
                logger.warning(f"Invalid viewport dimensions for page {page_number}: {width} x {height}")
                continue

            attempted += 1
            try:
                image = self.renderer.render(pdf_bytes, page_index, self.scale, self.timeout)
            except RenderTimeoutError as e:
                timed_out += 1
                logger.warning(f"Skipping page {page_number}: {e}")
                continue
            except PasswordRequiredError as e:
                raise ExtractionError(
                    ErrorKind.PASSWORD_PROTECTED,
                    "PDF is password protected. Please provide an unprotected PDF.",
                ) from e
            except Exception as e:
                logger.warning(f"Skipping page {page_number}: {e}")
                continue

            surfaces.append(RasterSurface(
                page_index=page_index,
                width=image.width,
                height=image.height,
                image=image,
            ))
            logger.info(f"Page {page_number} rendered: {image.width} x {image.height}")

        return attempted, timed_out

    @staticmethod
    def _release_all(surfaces: List[RasterSurface]) -> None:
        for surface in surfaces:
            surface.release()
