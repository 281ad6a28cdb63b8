"""
Error taxonomy for the IRP5 extraction pipeline
Every stage raises ExtractionError with a kind and a message that can be shown to the user as-is
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories surfaced to callers"""
    INVALID_INPUT = "invalid_input"
    PASSWORD_PROTECTED = "password_protected"
    CORRUPTED_DOCUMENT = "corrupted_document"
    NO_RENDERABLE_PAGES = "no_renderable_pages"
    RENDER_TIMEOUT = "render_timeout"
    OCR_ENGINE_FAILURE = "ocr_engine_failure"
    NOT_A_CERTIFICATE = "not_a_certificate"
    LOW_QUALITY_SCAN = "low_quality_scan"
    GROSS_AMOUNT_NOT_FOUND = "gross_amount_not_found"
    IMPLAUSIBLE_AMOUNTS = "implausible_amounts"
    UNEXPECTED_FAILURE = "unexpected_failure"


MANUAL_ENTRY_HINT = "Please try a higher quality scan or use manual entry."


class ExtractionError(Exception):
    """Raised by a pipeline stage that cannot produce a trustworthy result"""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self):
        return f"ExtractionError(kind={self.kind.value!r}, message={self.message!r})"
