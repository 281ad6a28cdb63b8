"""
Poppler-based page renderer
Rasterizes pages with pdf2image (pdftoppm/pdfinfo) and reads the embedded text layer with pdfplumber
"""
import io
import logging
from collections import defaultdict
from typing import List, Tuple

import pdfplumber
from pdf2image import convert_from_bytes, pdfinfo_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)
from pdfminer.pdfdocument import PDFPasswordIncorrect
from PIL import Image

from .base_renderer import (
    BasePageRenderer,
    DocumentReadError,
    PasswordRequiredError,
    RenderTimeoutError,
)

logger = logging.getLogger(__name__)


def _is_password_error(error: Exception) -> bool:
    """pdfinfo reports "Incorrect password"; pdfplumber wraps pdfminer's PDFPasswordIncorrect"""
    if isinstance(error, PDFPasswordIncorrect):
        return True
    if any(isinstance(arg, PDFPasswordIncorrect) for arg in error.args):
        return True
    return "password" in str(error).lower()


class PopplerRenderer(BasePageRenderer):
    """
    Renderer using Poppler through pdf2image
    Each call opens the document afresh so no state is shared between pipelines
    """

    def __init__(self, base_dpi: int = 72, y_tolerance: int = 3):
        """
        Initialize renderer

        Args:
            base_dpi: DPI corresponding to scale 1.0
            y_tolerance: Y-coordinate tolerance for grouping embedded words on the same line
        """
        self.base_dpi = base_dpi
        self.y_tolerance = y_tolerance

    @property
    def name(self) -> str:
        return "poppler"

    def page_count(self, pdf_bytes: bytes) -> int:
        try:
            info = pdfinfo_from_bytes(pdf_bytes)
        except PDFInfoNotInstalledError as e:
            raise DocumentReadError(f"Poppler is not installed: {e}") from e
        except (PDFPageCountError, PDFSyntaxError) as e:
            if _is_password_error(e):
                raise PasswordRequiredError("PDF is password protected") from e
            raise DocumentReadError(f"Unable to read PDF: {e}") from e

        try:
            return int(info["Pages"])
        except (KeyError, ValueError) as e:
            raise DocumentReadError("PDF page count is missing") from e

    def page_sizes(self, pdf_bytes: bytes, max_pages: int) -> List[Tuple[float, float]]:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                return [(float(page.width), float(page.height)) for page in pdf.pages[:max_pages]]
        except Exception as e:
            if _is_password_error(e):
                raise PasswordRequiredError("PDF is password protected") from e
            raise DocumentReadError(f"Unable to read page geometry: {e}") from e

    def render(self, pdf_bytes: bytes, page_index: int, scale: float, timeout: float) -> Image.Image:
        page_number = page_index + 1
        dpi = round(self.base_dpi * scale)
        try:
            images = convert_from_bytes(
                pdf_bytes,
                dpi=dpi,
                first_page=page_number,
                last_page=page_number,
                timeout=timeout,
            )
        except PDFPopplerTimeoutError as e:
            raise RenderTimeoutError(f"Page {page_number} render timeout") from e
        except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as e:
            if _is_password_error(e):
                raise PasswordRequiredError("PDF is password protected") from e
            raise DocumentReadError(f"Unable to render page {page_number}: {e}") from e

        if not images:
            raise DocumentReadError(f"Page {page_number} produced no image")

        # Only one page was requested; close anything extra
        for extra in images[1:]:
            extra.close()

        image = images[0]
        if image.mode != 'RGB':
            converted = image.convert('RGB')
            image.close()
            image = converted
        logger.debug(f"Rendered page {page_number} at {dpi} DPI: {image.width} x {image.height}")
        return image

    def embedded_text(self, pdf_bytes: bytes, page_index: int) -> str:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                if page_index >= len(pdf.pages):
                    return ""
                return self._words_to_text(pdf.pages[page_index])
        except Exception as e:
            if _is_password_error(e):
                raise PasswordRequiredError("PDF is password protected") from e
            raise DocumentReadError(f"Unable to read embedded text: {e}") from e

    def _words_to_text(self, page) -> str:
        """
        Build page text from extract_words() with y-tolerance grouping.
        Printed labels and filled-in amounts sit at slightly different y-coordinates,
        so plain extract_text() splits them onto separate lines.
        """
        words = page.extract_words(keep_blank_chars=True)
        if not words:
            return ""

        lines_by_y = defaultdict(list)
        for w in words:
            y_key = round(w['top'] / self.y_tolerance) * self.y_tolerance
            lines_by_y[y_key].append(w)

        text_lines = []
        for y in sorted(lines_by_y.keys()):
            line_words = sorted(lines_by_y[y], key=lambda w: w['x0'])
            text_lines.append(' '.join(w['text'] for w in line_words))

        return '\n'.join(text_lines)
