"""
Confidence Scoring System
Calculates per-field contributions, the overall percentage and user-facing warnings
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging

from config.extraction_config import EXTRACTION_CONFIG
from models import ExtractedDocument
from services.fallback_search import GrossCandidate
from services.field_catalog import FIELD_CATALOG, ExtractionField, FieldSpec

logger = logging.getLogger(__name__)


@dataclass
class FieldConfidence:
    """Confidence breakdown for a single field"""
    field_name: str
    value: float
    confidence: float
    source: str = "none"


@dataclass
class DocumentConfidence:
    """Overall document confidence with field-level breakdown"""
    overall_score: int
    field_scores: Dict[str, FieldConfidence]
    metadata: Dict[str, float] = field(default_factory=dict)


class ConfidenceScorer:
    """Calculates confidence scores for extracted fields"""

    def __init__(self, config: Dict = None, catalog: Tuple[FieldSpec, ...] = FIELD_CATALOG):
        """
        Initialize confidence scorer

        Args:
            config: Configuration dict (uses EXTRACTION_CONFIG if not provided)
            catalog: Fields that count towards the score
        """
        self.config = config or EXTRACTION_CONFIG
        self.catalog = catalog
        self.low_confidence = self.config['confidence']['low_confidence_warning']
        self.fallback_factor = self.config['confidence']['fallback_contribution_factor']
        self.plausibility = self.config['plausibility']

    def calculate_field_confidence(
        self,
        field_name: str,
        value: float,
        fallback: Optional[GrossCandidate] = None
    ) -> FieldConfidence:
        """
        Calculate the contribution of one field

        Args:
            field_name: Name of the field
            value: Corrected value (0 = not found)
            fallback: Candidate the value came from, if it was estimated

        Returns:
            FieldConfidence: 1.0 for a pattern match, weight x factor for an estimate, 0 when missing
        """
        if value <= 0:
            return FieldConfidence(field_name=field_name, value=value, confidence=0.0, source="none")

        if fallback is not None:
            return FieldConfidence(
                field_name=field_name,
                value=value,
                confidence=fallback.weight * self.fallback_factor,
                source="fallback",
            )

        return FieldConfidence(field_name=field_name, value=value, confidence=1.0, source="pattern")

    def calculate_overall_confidence(
        self,
        document: ExtractedDocument,
        fallback: Optional[GrossCandidate] = None
    ) -> DocumentConfidence:
        """
        Calculate overall document confidence

        Args:
            document: Corrected document
            fallback: Gross fallback candidate if the gross amount was estimated

        Returns:
            DocumentConfidence with the percentage of fields populated
        """
        field_scores = {}
        for spec in self.catalog:
            name = spec.field.value
            field_fallback = fallback if spec.field == ExtractionField.GROSS_REMUNERATION else None
            field_scores[name] = self.calculate_field_confidence(
                name, getattr(document, name), field_fallback
            )

        if not field_scores:
            return DocumentConfidence(overall_score=0, field_scores={})

        total = sum(fc.confidence for fc in field_scores.values())
        overall_score = round(100 * total / len(field_scores))
        found = sum(1 for fc in field_scores.values() if fc.source != "none")

        logger.info(f"Confidence: {overall_score}% ({found}/{len(field_scores)} fields found)")

        return DocumentConfidence(
            overall_score=overall_score,
            field_scores=field_scores,
            metadata={
                'fields_found': found,
                'field_count': len(field_scores),
            }
        )

    def get_warnings(self, document: ExtractedDocument, doc_confidence: DocumentConfidence,
                     fallback_used: bool = False) -> List[str]:
        """Human-readable warnings about the extracted amounts"""
        warnings = []

        if doc_confidence.overall_score < self.low_confidence:
            warnings.append("Low confidence in extracted data. Please verify the amounts.")

        high_gross = self.plausibility['gross_warning_above']
        if document.gross_remuneration > high_gross:
            warnings.append(f"Gross salary seems unusually high (>R{high_gross // 1_000_000}M)")

        ratio = self.plausibility['retirement_warning_ratio']
        if document.retirement_fund > document.gross_remuneration * ratio:
            warnings.append(
                f"Retirement fund contribution seems unusually high (>{ratio:.0%} of gross)"
            )

        if fallback_used:
            warnings.append(
                "Gross salary was estimated because code 3601 could not be read. Please verify the amount."
            )

        return warnings
