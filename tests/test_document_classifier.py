"""Tests for IRP5 document classification."""

import pytest

from services.document_classifier import DocumentClassifier
from services.errors import ErrorKind


@pytest.fixture
def classifier() -> DocumentClassifier:
    return DocumentClassifier()


class TestDocumentClassifier:
    """Test indicator and length thresholds."""

    def test_sample_certificate_passes(self, classifier, sample_text):
        outcome = classifier.classify(sample_text)
        assert outcome.passed
        assert outcome.indicator_count >= 2
        assert outcome.error_kind is None

    def test_single_indicator_is_rejected(self, classifier):
        text = "Monthly statement from SARS regarding your account. " * 5
        outcome = classifier.classify(text)

        assert not outcome.passed
        assert outcome.indicator_count == 1
        assert outcome.error_kind == ErrorKind.NOT_A_CERTIFICATE

    def test_two_indicators_and_enough_text_pass(self, classifier):
        text = "IRP5 certificate issued under SARS rules. " + "x" * 100
        outcome = classifier.classify(text)

        assert outcome.passed
        assert outcome.indicator_count == 2

    def test_short_text_is_low_quality(self, classifier):
        outcome = classifier.classify("IRP5 SARS 3601")

        assert not outcome.passed
        assert outcome.error_kind == ErrorKind.LOW_QUALITY_SCAN
        assert "manual entry" in outcome.message

    def test_indicators_checked_before_length(self, classifier):
        outcome = classifier.classify("hello")
        assert outcome.error_kind == ErrorKind.NOT_A_CERTIFICATE

    def test_empty_text(self, classifier):
        outcome = classifier.classify("")
        assert not outcome.passed
        assert outcome.indicator_count == 0
