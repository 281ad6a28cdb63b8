"""Tests for amount normalization."""

import pytest

from services.amount_normalizer import normalize_amount


class TestNormalizeAmount:
    """Test OCR amount text parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("R 122 664.00", 122664.00),
        ("14,800.92", 14800.92),
        ("1460,5", 1460.5),
        ("1,234,567.89", 1234567.89),
        ("482000", 482000.0),
        ("12.5", 12.5),
    ])
    def test_canonical_values(self, text, expected):
        assert normalize_amount(text) == pytest.approx(expected)

    def test_single_separator_with_three_trailing_digits_is_thousands(self):
        assert normalize_amount("1,460") == 1460.0
        assert normalize_amount("1.460") == 1460.0

    def test_currency_glyphs_are_ignored(self):
        assert normalize_amount("R1,460.00") == 1460.0
        assert normalize_amount("$ 250.50") == 250.5
        assert normalize_amount("€99") == 99.0

    @pytest.mark.parametrize("text", ["", "abc", "R", "--", "   "])
    def test_unparseable_returns_zero(self, text):
        assert normalize_amount(text) == 0.0

    def test_none_returns_zero(self):
        assert normalize_amount(None) == 0.0

    def test_never_negative(self):
        assert normalize_amount("-1,460.00") == 1460.0
        assert normalize_amount("-5") == 5.0
