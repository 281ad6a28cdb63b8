"""
Post-Extraction Corrector
Repairs the raw document with layout-aware heuristics and enforces the final plausibility guards
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from config.extraction_config import EXTRACTION_CONFIG
from models import ExtractedDocument
from services.errors import ErrorKind, ExtractionError
from services.fallback_search import GrossCandidate, GrossFallbackSearch
from services.field_catalog import (
    COLLISION_RULES,
    FIELD_CATALOG,
    ExtractionField,
    FieldSpec,
    get_field_spec,
    line_anchored_pattern,
)
from services.amount_normalizer import normalize_amount
from services.field_extractor import RawExtraction

logger = logging.getLogger(__name__)


@dataclass
class CorrectionResult:
    """Corrected document plus a human-readable note for every change"""
    document: ExtractedDocument
    notes: List[str] = field(default_factory=list)
    fallback_candidate: Optional[GrossCandidate] = None

    @property
    def fallback_used(self) -> bool:
        return self.fallback_candidate is not None


class PostExtractionCorrector:
    """
    Runs the correction passes in a fixed order:
    1. Duplicate disambiguation (prefer the smaller amount)
    2. Magnitude ceiling with one re-scan
    3. Cross-field collisions
    4. Gross remuneration fallback search
    """

    def __init__(self, config: Dict = None, catalog: Tuple[FieldSpec, ...] = FIELD_CATALOG,
                 fallback_search: GrossFallbackSearch = None):
        self.config = config or EXTRACTION_CONFIG
        self.catalog = catalog
        self.plausibility = self.config['plausibility']
        self.fallback_search = fallback_search or GrossFallbackSearch(self.config)

    def correct(self, text: str, raw: RawExtraction) -> CorrectionResult:
        """
        Apply every correction pass to a copy of the raw document

        Raises:
            ExtractionError: gross_amount_not_found if no gross amount can be found at all
        """
        document = raw.document.model_copy()
        result = CorrectionResult(document=document)

        self._prefer_smaller_duplicates(raw, result)
        self._enforce_ceilings(text, result)
        self._resolve_collisions(text, result)

        if document.gross_remuneration == 0:
            self._fallback_gross(text, result)

        for note in result.notes:
            logger.info(f"Correction: {note}")
        return result

    def _prefer_smaller_duplicates(self, raw: RawExtraction, result: CorrectionResult) -> None:
        for spec in self.catalog:
            if not spec.prefer_smaller_duplicate:
                continue
            amounts = sorted({c.value for c in raw.candidates_for(spec.field) if c.value > 0})
            if len(amounts) < 2:
                continue

            current = getattr(result.document, spec.field.value)
            smallest = amounts[0]
            if current != smallest:
                setattr(result.document, spec.field.value, smallest)
                result.notes.append(
                    f"{spec.field.value}: several amounts found {amounts}, using the smaller {smallest:,.2f}"
                )

    def _enforce_ceilings(self, text: str, result: CorrectionResult) -> None:
        for spec in self.catalog:
            if spec.ceiling is None:
                continue
            value = getattr(result.document, spec.field.value)
            if value <= spec.ceiling:
                continue

            replacement = 0.0
            for match in spec.primary_pattern.regex.finditer(text):
                amount = normalize_amount(match.group(1))
                if 0 < amount <= spec.ceiling:
                    replacement = amount
                    break

            setattr(result.document, spec.field.value, replacement)
            if replacement:
                result.notes.append(
                    f"{spec.field.value}: {value:,.2f} exceeds {spec.ceiling:,.0f}, "
                    f"re-scanned code {spec.primary_code} and found {replacement:,.2f}"
                )
            else:
                result.notes.append(
                    f"{spec.field.value}: {value:,.2f} exceeds {spec.ceiling:,.0f}, value discarded"
                )

    def _resolve_collisions(self, text: str, result: CorrectionResult) -> None:
        for lower, higher in COLLISION_RULES:
            lower_value = getattr(result.document, lower.value)
            higher_value = getattr(result.document, higher.value)
            if lower_value <= 0 or lower_value != higher_value:
                continue

            lower_spec = get_field_spec(lower, self.catalog)
            if line_anchored_pattern(lower_spec).search(text):
                logger.debug(f"{lower.value} equals {higher.value} but code {lower_spec.primary_code} is confirmed")
                continue

            setattr(result.document, lower.value, 0.0)
            result.notes.append(
                f"{lower.value}: same amount as {higher.value} without its own code line, value discarded"
            )

    def _fallback_gross(self, text: str, result: CorrectionResult) -> None:
        logger.info("No gross remuneration found, trying fallback search")
        candidates = self.fallback_search.search(text)
        if not candidates:
            raise ExtractionError(
                ErrorKind.GROSS_AMOUNT_NOT_FOUND,
                "Could not find gross salary (Code 3601). The document may be page 1 only, "
                "or the salary data may be unclear. Please try uploading page 2 or use manual entry.",
            )

        best = candidates[0]
        result.document.gross_remuneration = best.amount
        result.fallback_candidate = best
        result.notes.append(
            f"{ExtractionField.GROSS_REMUNERATION.value}: estimated as {best.amount:,.2f} "
            f"from {best.strategy.replace('_', ' ')} text"
        )

    def enforce_guards(self, document: ExtractedDocument) -> None:
        """
        Final plausibility checks on the corrected document

        Raises:
            ExtractionError: implausible_amounts
        """
        gross = document.gross_remuneration
        if gross < self.plausibility['gross_min'] or gross > self.plausibility['gross_max']:
            logger.error(f"Gross remuneration {gross} outside plausible range")
            raise ExtractionError(
                ErrorKind.IMPLAUSIBLE_AMOUNTS,
                "Gross salary amount appears invalid. Please check the document quality or use manual entry.",
            )

        if document.paye_withheld > gross:
            logger.error(f"PAYE {document.paye_withheld} exceeds gross {gross}")
            raise ExtractionError(
                ErrorKind.IMPLAUSIBLE_AMOUNTS,
                "PAYE amount cannot exceed gross salary. Please check the document or use manual entry.",
            )
