"""
Field Extraction Engine
Applies the field pattern catalog to recognized text and builds the raw (uncorrected) document
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from config.extraction_config import EXTRACTION_CONFIG
from models import ExtractedDocument, ExtractionSource
from services.amount_normalizer import normalize_amount
from services.field_catalog import (
    FIELD_CATALOG,
    TAX_YEAR_PATTERNS,
    ExtractionField,
    FieldSpec,
    PatternKind,
)

logger = logging.getLogger(__name__)


@dataclass
class CandidateMatch:
    """One occurrence of one pattern in the text"""
    field: ExtractionField
    kind: PatternKind
    code: Optional[str]
    weight: float
    raw_text: str
    value: float
    position: int
    selected: bool = False


@dataclass
class RawExtraction:
    """Document as read straight from the patterns, plus every candidate that was seen"""
    document: ExtractedDocument
    candidates: List[CandidateMatch] = field(default_factory=list)
    winners: Dict[ExtractionField, CandidateMatch] = field(default_factory=dict)

    def candidates_for(self, target: ExtractionField) -> List[CandidateMatch]:
        return [c for c in self.candidates if c.field == target]


class FieldExtractionEngine:
    """
    Pattern-driven extractor for IRP5 amounts
    - Patterns are tried in catalog order, most specific first
    - The first pattern whose first occurrence is a positive amount wins
    - Every occurrence of every tried pattern is kept as a candidate
    """

    def __init__(self, config: Dict = None):
        self.config = config or EXTRACTION_CONFIG
        self.min_year = self.config['tax_year']['min_year']
        self.max_years_ahead = self.config['tax_year']['max_years_ahead']

    def extract(self, text: str, catalog: Tuple[FieldSpec, ...] = FIELD_CATALOG,
                source: ExtractionSource = ExtractionSource.OCR_UPLOAD) -> RawExtraction:
        """
        Extract every catalog field from text

        Args:
            text: Recognized or embedded text
            catalog: Field specs to apply
            source: Which path produced the text

        Returns:
            RawExtraction with the partially populated document
        """
        values = {}
        candidates: List[CandidateMatch] = []
        winners: Dict[ExtractionField, CandidateMatch] = {}

        for spec in catalog:
            winner = self._extract_field(text, spec, candidates)
            if winner:
                values[spec.field.value] = winner.value
                winners[spec.field] = winner
                logger.debug(
                    f"{spec.field.value}: {winner.value} "
                    f"({winner.kind.value}, code {winner.code or '-'})"
                )
            else:
                logger.debug(f"{spec.field.value}: not found")

        document = ExtractedDocument(
            **values,
            tax_year=self.extract_tax_year(text),
            source=source,
        )

        logger.info(f"Extracted {len(winners)}/{len(catalog)} fields from {len(text)} characters")
        return RawExtraction(document=document, candidates=candidates, winners=winners)

    def _extract_field(self, text: str, spec: FieldSpec,
                       candidates: List[CandidateMatch]) -> Optional[CandidateMatch]:
        for pattern in spec.patterns:
            matches = [
                CandidateMatch(
                    field=spec.field,
                    kind=pattern.kind,
                    code=pattern.code,
                    weight=pattern.weight,
                    raw_text=match.group(1),
                    value=normalize_amount(match.group(1)),
                    position=match.start(1),
                )
                for match in pattern.regex.finditer(text)
            ]
            candidates.extend(matches)

            if matches and matches[0].value > 0:
                matches[0].selected = True
                return matches[0]

        return None

    def extract_tax_year(self, text: str) -> str:
        """Return the first labelled year within the accepted range, else the current year"""
        current_year = datetime.now().year
        max_year = current_year + self.max_years_ahead

        for pattern in TAX_YEAR_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue
            year = int(match.group(1))
            if self.min_year <= year <= max_year:
                return str(year)
            logger.debug(f"Ignoring out-of-range tax year {year}")

        return str(current_year)
