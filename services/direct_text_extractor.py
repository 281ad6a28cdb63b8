"""
Direct-Text Fallback Extractor
Reads the embedded text layer when pages cannot be rasterized
"""
import io
import logging
from typing import Dict, List

from pdfminer.high_level import extract_text
from pdfminer.layout import LAParams

from config.extraction_config import EXTRACTION_CONFIG
from services.renderers import BasePageRenderer, PasswordRequiredError, PopplerRenderer

logger = logging.getLogger(__name__)


class DirectTextExtractor:
    """
    Tries two text-layer readers and keeps whichever returns more text
    (pdfplumber via the renderer first, pdfminer.six second)
    """

    def __init__(self, renderer: BasePageRenderer = None, config: Dict = None,
                 line_overlap: float = 0.5, char_margin: float = 2.0, word_margin: float = 0.1):
        self.config = config or EXTRACTION_CONFIG
        self.max_pages = self.config['rendering']['max_pages']
        self.renderer = renderer or PopplerRenderer(base_dpi=self.config['rendering']['base_dpi'])
        self.laparams = LAParams(
            line_overlap=line_overlap,
            char_margin=char_margin,
            word_margin=word_margin,
            boxes_flow=0.5
        )

    def extract_embedded_text(self, pdf_bytes: bytes) -> str:
        """
        Concatenate the embedded text of the first pages

        Returns:
            Best text found, or "" when the document has no usable text layer

        Raises:
            PasswordRequiredError: if the document turns out to be encrypted
        """
        results = []

        try:
            results.append((self.renderer.name, self._extract_with_renderer(pdf_bytes)))
        except PasswordRequiredError:
            raise
        except Exception as e:
            logger.error(f"{self.renderer.name} text extraction failed: {e}")

        try:
            results.append(("pdfminer", self._extract_with_pdfminer(pdf_bytes)))
        except Exception as e:
            logger.error(f"pdfminer text extraction failed: {e}")

        if not results:
            return ""

        for name, text in results:
            logger.info(f"{name} embedded text: {len(text)} characters")

        best_name, best_text = max(results, key=lambda item: len(item[1]))
        logger.info(f"Selected {best_name} embedded text")
        return best_text

    def _extract_with_renderer(self, pdf_bytes: bytes) -> str:
        pages: List[str] = []
        for page_index in range(self.max_pages):
            text = self.renderer.embedded_text(pdf_bytes, page_index)
            if text:
                pages.append(text)
        return '\n'.join(pages).strip()

    def _extract_with_pdfminer(self, pdf_bytes: bytes) -> str:
        text = extract_text(
            io.BytesIO(pdf_bytes),
            page_numbers=list(range(self.max_pages)),
            laparams=self.laparams,
        )
        return (text or '').strip()
