"""
Document Classifier
Decides whether recognized text belongs to an IRP5 certificate before any field is extracted
"""
import re
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.extraction_config import EXTRACTION_CONFIG
from services.errors import ErrorKind, MANUAL_ENTRY_HINT

logger = logging.getLogger(__name__)


# Phrases and codes printed on every IRP5 / IT3(a)
IRP5_INDICATORS = [
    re.compile(r'IRP5', re.IGNORECASE),
    re.compile(r'Income\s*Tax\s*Certificate', re.IGNORECASE),
    re.compile(r'SARS', re.IGNORECASE),
    re.compile(r'Year\s*of\s*Assessment', re.IGNORECASE),
    re.compile(r'Tax\s*Year', re.IGNORECASE),
    re.compile(r'Total\s*Salary', re.IGNORECASE),
    re.compile(r'PAYE', re.IGNORECASE),
    re.compile(r'Gross\s*Remuneration', re.IGNORECASE),
    re.compile(r'Tax\s*Reference', re.IGNORECASE),
    re.compile(r'Employer\s*Name', re.IGNORECASE),
    re.compile(r'Employee\s*Number', re.IGNORECASE),
    re.compile(r'3601|4102|3605|4005'),
]


@dataclass
class ValidationOutcome:
    """Result of classifying a text"""
    passed: bool
    indicator_count: int
    matched_indicators: List[str] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None


class DocumentClassifier:
    """Counts IRP5 indicators and checks the text is long enough to be a real scan"""

    def __init__(self, config: Dict = None):
        self.config = config or EXTRACTION_CONFIG
        settings = self.config['classification']
        self.min_indicators = settings['min_indicators']
        self.min_text_length = settings['min_text_length']

    def classify(self, text: str) -> ValidationOutcome:
        text = text or ''
        matched = [pattern.pattern for pattern in IRP5_INDICATORS if pattern.search(text)]

        logger.info(f"Found {len(matched)} IRP5 indicators in document")
        for i, indicator in enumerate(matched, 1):
            logger.debug(f"  {i}. Matched pattern: {indicator}")

        if len(matched) < self.min_indicators:
            logger.warning(f"Not enough IRP5 indicators found. Text preview: {text[:200]!r}")
            return ValidationOutcome(
                passed=False,
                indicator_count=len(matched),
                matched_indicators=matched,
                error_kind=ErrorKind.NOT_A_CERTIFICATE,
                message=(
                    "Document does not appear to be an IRP5 certificate. "
                    "Please ensure you are uploading a valid IRP5 document."
                ),
            )

        if len(text) < self.min_text_length:
            return ValidationOutcome(
                passed=False,
                indicator_count=len(matched),
                matched_indicators=matched,
                error_kind=ErrorKind.LOW_QUALITY_SCAN,
                message=f"Document quality is too poor for processing. {MANUAL_ENTRY_HINT}",
            )

        return ValidationOutcome(
            passed=True,
            indicator_count=len(matched),
            matched_indicators=matched,
        )
