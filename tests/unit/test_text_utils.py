"""
Unit tests for identifier and title helpers.
"""

import pytest

from utils.text_utils import (
    DEFAULT_PRODUCT_TITLE,
    clean_value,
    comparison_key,
    is_placeholder_value,
    is_short_barcode,
    is_valid_product_title,
)


class TestPlaceholderValues:
    """Tests for is_placeholder_value()."""

    @pytest.mark.parametrize("value", [
        "n/a", "N/A", "na", "None", "NULL", "No Barcode", "no barcode available",
        "Missing Barcode", "no scannable barcode", "", "   ", None,
    ])
    def test_placeholders(self, value):
        assert is_placeholder_value(value) is True

    @pytest.mark.parametrize("value", ["8801234567890", "AB", "nobarcode", "none-123", "no sku"])
    def test_real_values(self, value):
        assert is_placeholder_value(value) is False


class TestShortBarcode:
    """Tests for is_short_barcode()."""

    def test_two_characters_is_short(self):
        assert is_short_barcode("12") is True

    def test_three_characters_is_not_short(self):
        assert is_short_barcode("123") is False

    def test_whitespace_is_trimmed_before_measuring(self):
        assert is_short_barcode("  1 ") is True

    def test_placeholder_is_never_short(self):
        assert is_short_barcode("na") is False

    def test_empty_is_never_short(self):
        assert is_short_barcode("") is False
        assert is_short_barcode(None) is False


class TestComparisonKey:
    """Tests for comparison_key()."""

    def test_case_folded_and_trimmed(self):
        assert comparison_key("  AbC-1 ") == "abc-1"

    def test_placeholder_has_no_key(self):
        assert comparison_key("No Barcode") is None

    def test_empty_has_no_key(self):
        assert comparison_key("") is None


class TestProductTitle:
    """Tests for is_valid_product_title()."""

    def test_normal_title(self):
        assert is_valid_product_title("Rose Face Cream") is True

    @pytest.mark.parametrize("title", ["", "X", "null", "N/A", "none", DEFAULT_PRODUCT_TITLE, None])
    def test_rejected_titles(self, title):
        assert is_valid_product_title(title) is False


class TestCleanValue:
    """Tests for clean_value()."""

    def test_none_becomes_empty(self):
        assert clean_value(None) == ""

    def test_strips_whitespace(self):
        assert clean_value("  S1\t") == "S1"
