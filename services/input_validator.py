"""
Upload pre-checks
Rejects files that cannot be an IRP5 PDF before any rendering work starts
"""
import logging
from typing import Dict, Optional

from config.extraction_config import EXTRACTION_CONFIG
from services.errors import ErrorKind, ExtractionError

logger = logging.getLogger(__name__)


class InputValidator:
    """Checks content type, size, filename and the PDF header of an upload"""

    def __init__(self, config: Dict = None):
        self.config = config or EXTRACTION_CONFIG
        self.limits = self.config['input_limits']

    def validate(self, pdf_bytes: bytes, filename: Optional[str] = None,
                 content_type: Optional[str] = None) -> None:
        """
        Validate an upload

        Args:
            pdf_bytes: Raw file content
            filename: Name supplied by the client
            content_type: MIME type supplied by the client

        Raises:
            ExtractionError: invalid_input for wrong type, size or filename,
                corrupted_document when the bytes do not start with a PDF header
        """
        expected_type = self.limits['content_type']
        if content_type and content_type != expected_type:
            raise ExtractionError(
                ErrorKind.INVALID_INPUT,
                "Invalid file type. Please upload a PDF file.",
            )
        if not content_type and not (filename or '').lower().endswith('.pdf'):
            raise ExtractionError(
                ErrorKind.INVALID_INPUT,
                "Invalid file type. Please upload a PDF file.",
            )

        size = len(pdf_bytes or b'')
        if size > self.limits['max_bytes']:
            max_mb = self.limits['max_bytes'] // (1024 * 1024)
            raise ExtractionError(
                ErrorKind.INVALID_INPUT,
                f"File size too large. Please upload a PDF smaller than {max_mb}MB.",
            )
        if size < self.limits['min_bytes']:
            raise ExtractionError(
                ErrorKind.INVALID_INPUT,
                "File appears to be empty or corrupted.",
            )

        lowered = (filename or '').lower()
        if any(marker in lowered for marker in self.limits['suspicious_filename_markers']):
            raise ExtractionError(
                ErrorKind.INVALID_INPUT,
                "Password-protected PDFs are not supported. Please remove password protection and try again.",
            )

        if not pdf_bytes.startswith(self.limits['pdf_header']):
            logger.warning(f"Upload {filename!r} has no PDF header")
            raise ExtractionError(
                ErrorKind.CORRUPTED_DOCUMENT,
                "PDF file appears to be corrupted or invalid.",
            )

        logger.debug(f"Upload {filename!r} passed pre-checks ({size} bytes)")
