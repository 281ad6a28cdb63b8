"""
Pipeline Orchestrator
Drives one IRP5 PDF from raw bytes to a corrected, scored document or a typed failure
"""
import logging
from typing import Callable, Dict, Optional

from config.extraction_config import EXTRACTION_CONFIG
from models import (
    ExtractionFailure,
    ExtractionOutcome,
    ExtractionSource,
    ExtractionSuccess,
    PipelineStage,
    ProcessingProgress,
)
from services.confidence_scorer import ConfidenceScorer
from services.direct_text_extractor import DirectTextExtractor
from services.document_classifier import DocumentClassifier
from services.errors import ErrorKind, ExtractionError, MANUAL_ENTRY_HINT
from services.field_extractor import FieldExtractionEngine
from services.input_validator import InputValidator
from services.ocr_processor import BaseOCREngine, OCRProcessor, TesseractEngine
from services.post_extraction_corrector import PostExtractionCorrector
from services.rasterizer import Rasterizer
from services.renderers import BasePageRenderer, PasswordRequiredError, PopplerRenderer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProcessingProgress], None]


class ExtractionPipeline:
    """
    Sequential pipeline for one document at a time:
    loading -> rasterizing -> recognizing -> classifying -> extracting -> correcting -> done,
    with rasterizing -> direct_text_fallback -> classifying when pages cannot be rendered.
    Instances hold no per-document state between calls except the current stage.
    """

    def __init__(self, renderer: BasePageRenderer = None, ocr_engine: BaseOCREngine = None,
                 config: Dict = None):
        """
        Initialize pipeline

        Args:
            renderer: PDF renderer (PopplerRenderer if not provided)
            ocr_engine: OCR engine (TesseractEngine if not provided)
            config: Configuration dict (uses EXTRACTION_CONFIG if not provided)
        """
        self.config = config or EXTRACTION_CONFIG
        self.progress = self.config['progress']
        self.min_text_length = self.config['classification']['min_text_length']

        renderer = renderer or PopplerRenderer(base_dpi=self.config['rendering']['base_dpi'])
        self.ocr_engine = ocr_engine or TesseractEngine(self.config)

        self.input_validator = InputValidator(self.config)
        self.rasterizer = Rasterizer(renderer, self.config)
        self.direct_text_extractor = DirectTextExtractor(renderer, self.config)
        self.ocr_processor = OCRProcessor(self.ocr_engine, self.config)
        self.classifier = DocumentClassifier(self.config)
        self.field_extractor = FieldExtractionEngine(self.config)
        self.corrector = PostExtractionCorrector(self.config)
        self.scorer = ConfidenceScorer(self.config)

        self.stage = PipelineStage.LOADING
        self._last_percent = 0.0

    def process(
        self,
        pdf_bytes: bytes,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionOutcome:
        """
        Run the full pipeline

        Args:
            pdf_bytes: Uploaded file content
            filename: Client-supplied filename
            content_type: Client-supplied MIME type
            on_progress: Receives ProcessingProgress events; its exceptions are ignored

        Returns:
            ExtractionSuccess or ExtractionFailure (never raises)
        """
        self._last_percent = 0.0
        logger.info(f"Processing {filename or 'upload'} ({len(pdf_bytes or b'')} bytes)")

        try:
            return self._run(pdf_bytes, filename, content_type, on_progress)

        except ExtractionError as e:
            logger.error(f"Extraction failed for {filename}: [{e.kind.value}] {e.message}")
            self._advance(on_progress, PipelineStage.FAILED, self._last_percent, e.message)
            return ExtractionFailure(error_kind=e.kind, message=e.message)

        except Exception as e:
            logger.exception(f"Unexpected error processing {filename}: {e}")
            message = f"Failed to process PDF: {e}"
            self._advance(on_progress, PipelineStage.FAILED, self._last_percent, message)
            return ExtractionFailure(error_kind=ErrorKind.UNEXPECTED_FAILURE, message=message)

    def _run(self, pdf_bytes, filename, content_type, on_progress) -> ExtractionSuccess:
        # Stage 1: Load
        self._advance(on_progress, PipelineStage.LOADING, self.progress['loading'],
                      "Loading PDF document...")
        self.input_validator.validate(pdf_bytes, filename, content_type)

        # Stage 2: Rasterize (or fall back to the embedded text layer)
        self._advance(on_progress, PipelineStage.RASTERIZING, self.progress['rasterizing'],
                      "Converting PDF to images...")
        source = ExtractionSource.OCR_UPLOAD
        try:
            surfaces = self.rasterizer.rasterize(pdf_bytes)
        except ExtractionError as e:
            if e.kind == ErrorKind.PASSWORD_PROTECTED:
                raise
            logger.warning(f"Rasterization failed ({e.kind.value}), trying embedded text")
            text = self._direct_text(pdf_bytes, e, on_progress)
            source = ExtractionSource.FALLBACK_TEXT_EXTRACTION
        else:
            text = self._recognize(surfaces, on_progress)

        # Stage 3: Classify
        self._advance(on_progress, PipelineStage.CLASSIFYING, self.progress['classifying'],
                      "Checking document type...")
        outcome = self.classifier.classify(text)
        if not outcome.passed:
            raise ExtractionError(outcome.error_kind, outcome.message)

        # Stage 4: Extract
        self._advance(on_progress, PipelineStage.EXTRACTING, self.progress['extracting'],
                      "Extracting IRP5 data...")
        raw = self.field_extractor.extract(text, source=source)

        # Stage 5: Correct and validate
        self._advance(on_progress, PipelineStage.CORRECTING, self.progress['correcting'],
                      "Correcting extracted amounts...")
        correction = self.corrector.correct(text, raw)

        self._advance(on_progress, PipelineStage.CORRECTING, self.progress['validating'],
                      "Validating extracted data...")
        document = correction.document
        self.corrector.enforce_guards(document)

        doc_confidence = self.scorer.calculate_overall_confidence(document, correction.fallback_candidate)
        document.confidence = doc_confidence.overall_score
        warnings = self.scorer.get_warnings(document, doc_confidence, correction.fallback_used)
        warnings.extend(correction.notes)

        self._advance(on_progress, PipelineStage.DONE, self.progress['done'],
                      "Processing complete!")
        logger.info(
            f"Extracted {filename}: gross {document.gross_remuneration:,.2f}, "
            f"confidence {document.confidence}%, {len(warnings)} warnings"
        )
        return ExtractionSuccess(data=document, confidence=document.confidence, warnings=warnings)

    def _recognize(self, surfaces, on_progress) -> str:
        start = self.progress['recognizing_start']
        span = self.progress['recognizing_span']
        self._advance(on_progress, PipelineStage.RECOGNIZING, start, "Running OCR on document...")

        def report(fraction: float):
            percent = start + span * fraction
            self._advance(on_progress, PipelineStage.RECOGNIZING, percent,
                          f"Processing text... {round(fraction * 100)}%")

        try:
            return self.ocr_processor.recognize(surfaces, report)
        finally:
            for surface in surfaces:
                surface.release()

    def _direct_text(self, pdf_bytes: bytes, render_error: ExtractionError, on_progress) -> str:
        self._advance(on_progress, PipelineStage.DIRECT_TEXT_FALLBACK,
                      self.progress['direct_text_fallback'],
                      "Trying alternative extraction method...")
        try:
            text = self.direct_text_extractor.extract_embedded_text(pdf_bytes)
        except PasswordRequiredError as e:
            raise ExtractionError(
                ErrorKind.PASSWORD_PROTECTED,
                "PDF is password protected. Please provide an unprotected PDF.",
            ) from e

        if len(text) < self.min_text_length:
            logger.error(f"Embedded text unusable ({len(text)} characters)")
            raise ExtractionError(render_error.kind, f"{render_error.message} {MANUAL_ENTRY_HINT}")

        logger.info(f"Fallback text extraction successful: {len(text)} characters")
        return text

    def _advance(self, on_progress: Optional[ProgressCallback], stage: PipelineStage,
                 percent: float, message: str) -> None:
        self.stage = stage
        self._last_percent = percent
        logger.debug(f"[{percent:.0f}%] {stage.value}: {message}")
        if on_progress is None:
            return
        try:
            on_progress(ProcessingProgress(percent=percent, message=message, stage=stage))
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")
