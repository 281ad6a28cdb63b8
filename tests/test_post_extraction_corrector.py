"""Tests for post-extraction corrections and plausibility guards."""

import pytest

from models import ExtractedDocument
from services.confidence_scorer import ConfidenceScorer
from services.errors import ErrorKind, ExtractionError
from services.field_extractor import FieldExtractionEngine
from services.post_extraction_corrector import PostExtractionCorrector


@pytest.fixture
def engine() -> FieldExtractionEngine:
    return FieldExtractionEngine()


@pytest.fixture
def corrector() -> PostExtractionCorrector:
    return PostExtractionCorrector()


def correct(engine, corrector, text):
    return corrector.correct(text, engine.extract(text))


class TestDuplicateDisambiguation:
    """Test the prefer-smaller rule for UIF."""

    def test_uif_prefers_smaller_amount(self, engine, corrector):
        text = "Gross Remuneration 482,000.00 3601\n14,600.00 3605\n1,460.00 3605\n"
        result = correct(engine, corrector, text)

        assert result.document.uif_contribution == 1460.0
        assert any("uif_contribution" in note for note in result.notes)

    def test_single_uif_amount_is_kept(self, engine, corrector, sample_text):
        result = correct(engine, corrector, sample_text)
        assert result.document.uif_contribution == 1771.56
        assert result.notes == []

    def test_raw_document_is_not_modified(self, engine, corrector):
        text = "Gross Remuneration 482,000.00 3601\n14,600.00 3605\n1,460.00 3605\n"
        raw = engine.extract(text)
        corrector.correct(text, raw)
        assert raw.document.uif_contribution == 14600.0


class TestMagnitudeCeiling:
    """Test rejection of implausibly large contributions."""

    def test_value_above_ceiling_is_discarded(self, engine, corrector):
        text = "Gross Remuneration 482,000.00 3601\n25,000,000.00 4005\n"
        result = correct(engine, corrector, text)

        assert result.document.retirement_fund == 0.0
        assert any("retirement_fund" in note for note in result.notes)

    def test_rescan_finds_value_within_ceiling(self, engine, corrector):
        text = "Gross Remuneration 482,000.00 3601\n25,000,000.00 4005\n14,800.92 4005\n"
        result = correct(engine, corrector, text)

        assert result.document.retirement_fund == 14800.92

    def test_discarded_value_lowers_confidence(self, engine, corrector):
        scorer = ConfidenceScorer()
        text = "Gross Remuneration 482,000.00 3601\n25,000,000.00 4005\n"
        raw = engine.extract(text)
        result = corrector.correct(text, raw)

        before = scorer.calculate_overall_confidence(raw.document).overall_score
        after = scorer.calculate_overall_confidence(result.document).overall_score
        assert after < before


class TestCollisions:
    """Test medical credits vs medical scheme collisions."""

    def test_equal_amount_without_code_line_is_reset(self, engine, corrector):
        text = (
            "Gross Remuneration 482,000.00 3601\n"
            "24,600.00 3810\n"
            "Medical tax credit 24,600.00\n"
        )
        result = correct(engine, corrector, text)

        assert result.document.medical_scheme == 24600.0
        assert result.document.medical_credits == 0.0

    def test_equal_amount_confirmed_by_code_line_is_kept(self, engine, corrector):
        text = (
            "Gross Remuneration 482,000.00 3601\n"
            "24,600.00 3810\n"
            "24,600.00 4150\n"
        )
        result = correct(engine, corrector, text)

        assert result.document.medical_scheme == 24600.0
        assert result.document.medical_credits == 24600.0


class TestGrossFallback:
    """Test the gross remuneration fallback path."""

    def test_fallback_populates_gross(self, engine, corrector, fallback_text):
        result = correct(engine, corrector, fallback_text)

        assert result.document.gross_remuneration == 482000.0
        assert result.fallback_used
        assert result.fallback_candidate.weight == 0.9

    def test_no_candidate_raises(self, engine, corrector):
        with pytest.raises(ExtractionError) as exc_info:
            correct(engine, corrector, "98,450.00 4102\n")

        assert exc_info.value.kind == ErrorKind.GROSS_AMOUNT_NOT_FOUND
        assert "manual entry" in exc_info.value.message


class TestGuards:
    """Test final plausibility guards."""

    def test_gross_below_minimum(self, corrector):
        with pytest.raises(ExtractionError) as exc_info:
            corrector.enforce_guards(ExtractedDocument(gross_remuneration=500))
        assert exc_info.value.kind == ErrorKind.IMPLAUSIBLE_AMOUNTS

    def test_gross_above_maximum(self, corrector):
        with pytest.raises(ExtractionError) as exc_info:
            corrector.enforce_guards(ExtractedDocument(gross_remuneration=60_000_000))
        assert exc_info.value.kind == ErrorKind.IMPLAUSIBLE_AMOUNTS

    def test_paye_above_gross(self, corrector):
        document = ExtractedDocument(gross_remuneration=100_000, paye_withheld=150_000)
        with pytest.raises(ExtractionError) as exc_info:
            corrector.enforce_guards(document)
        assert exc_info.value.kind == ErrorKind.IMPLAUSIBLE_AMOUNTS
        assert "PAYE" in exc_info.value.message

    def test_plausible_document_passes(self, corrector):
        corrector.enforce_guards(ExtractedDocument(gross_remuneration=482_000, paye_withheld=98_450))
