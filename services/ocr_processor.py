"""
OCR Orchestrator
Runs Tesseract over rendered pages one at a time and joins the page texts
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import pytesseract
from PIL import Image

from config.extraction_config import EXTRACTION_CONFIG
from services.errors import ErrorKind, ExtractionError
from services.rasterizer import RasterSurface

logger = logging.getLogger(__name__)

EngineProgress = Callable[[float], None]


class OCREngineUnavailable(Exception):
    """The OCR engine binary is missing or cannot start"""


@dataclass
class PageText:
    """Recognized text of one page"""
    page_number: int
    text: str


class BaseOCREngine(ABC):
    """
    Abstract base class for OCR engines
    recognize() handles one page and reports engine progress from 0.0 to 1.0
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the name of this engine"""
        pass

    @abstractmethod
    def recognize(self, image: Image.Image, on_progress: Optional[EngineProgress] = None) -> str:
        """
        Recognize the text of one page image

        Raises:
            OCREngineUnavailable: if the engine cannot run at all
        """
        pass


class TesseractEngine(BaseOCREngine):
    """
    pytesseract wrapper; every recognize() call spawns its own Tesseract process,
    so nothing outlives the page it was started for
    """

    def __init__(self, config: Dict = None):
        self.config = config or EXTRACTION_CONFIG
        settings = self.config['ocr']
        self.language = settings['language']
        self.timeout = settings['page_timeout_seconds']
        self.tesseract_config = (
            f"{settings['base_config']} -c tessedit_char_whitelist={settings['char_whitelist']}"
        )

    @property
    def name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        try:
            pytesseract.get_tesseract_version()
            return True
        except pytesseract.TesseractNotFoundError:
            return False

    def recognize(self, image: Image.Image, on_progress: Optional[EngineProgress] = None) -> str:
        """
        Recognize one page image

        Raises:
            OCREngineUnavailable: if Tesseract is not installed
            RuntimeError: on timeout or a Tesseract error (pytesseract raises these as RuntimeError)
        """
        if on_progress:
            on_progress(0.0)
        try:
            text = pytesseract.image_to_string(
                image,
                lang=self.language,
                config=self.tesseract_config,
                timeout=self.timeout,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise OCREngineUnavailable(str(e)) from e
        if on_progress:
            on_progress(1.0)
        return text


class OCRProcessor:
    """Sequential page OCR with per-page isolation"""

    def __init__(self, engine: BaseOCREngine = None, config: Dict = None):
        """
        Initialize OCR processor

        Args:
            engine: OCR engine (TesseractEngine if not provided)
            config: Configuration dict (uses EXTRACTION_CONFIG if not provided)
        """
        self.config = config or EXTRACTION_CONFIG
        self.engine = engine or TesseractEngine(self.config)
        self.page_marker = self.config['ocr']['page_marker']

    def recognize(self, surfaces: List[RasterSurface],
                  on_progress: Optional[EngineProgress] = None) -> str:
        """
        OCR every surface in order. Each surface is released as soon as its page is done.

        Args:
            surfaces: Rendered pages
            on_progress: Receives the overall fraction done (0.0 - 1.0)

        Returns:
            Page texts joined with page markers

        Raises:
            ExtractionError: ocr_engine_failure if the engine is missing or no page yields text
        """
        page_count = len(surfaces)
        pages: List[PageText] = []

        try:
            for position, surface in enumerate(surfaces):
                page_number = surface.page_index + 1

                def report(engine_progress: float, position=position):
                    if on_progress and page_count:
                        on_progress((position + engine_progress) / page_count)

                try:
                    logger.debug(f"Running OCR on page {page_number}")
                    text = self.engine.recognize(surface.image, report)
                except OCREngineUnavailable as e:
                    logger.error(f"OCR engine unavailable: {e}")
                    raise ExtractionError(
                        ErrorKind.OCR_ENGINE_FAILURE,
                        "OCR engine is not available. Please try again later or use manual entry.",
                    ) from e
                except Exception as e:
                    logger.warning(f"Skipping page {page_number}, OCR failed: {e}")
                    continue
                finally:
                    surface.release()

                text = (text or '').strip()
                logger.info(f"Page {page_number} OCR completed: {len(text)} characters")
                if text:
                    pages.append(PageText(page_number=page_number, text=text))
        finally:
            for surface in surfaces:
                surface.release()

        if not pages:
            raise ExtractionError(
                ErrorKind.OCR_ENGINE_FAILURE,
                "OCR processing failed to extract text. Please try a higher quality scan or use manual entry.",
            )

        full_text = ''.join(
            self.page_marker.format(page_number=page.page_number) + page.text
            for page in pages
        )
        logger.info(f"OCR completed: {len(pages)}/{page_count} pages, {len(full_text)} characters")
        return full_text
