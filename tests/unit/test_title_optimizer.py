"""
Unit tests for TitleOptimizer.

Pipeline under test: brand removal → whitespace cleanup → edge trim →
80-character truncation.
"""

import pytest

from app.converters.title_optimizer import EBAY_TITLE_MAX_LENGTH, TitleOptimizer


@pytest.fixture
def optimizer():
    return TitleOptimizer()


class TestBasicBehavior:

    def test_empty_title(self, optimizer):
        assert optimizer.optimize("") == ""

    def test_short_title_unchanged(self, optimizer):
        title = "USB C Charger 40W Fast"
        assert optimizer.optimize(title) == title

    def test_always_within_80_chars(self, optimizer):
        long_title = (
            "Galaxy S24 Ultra 512GB Unlocked 5G Smartphone with "
            "Titanium Frame and Advanced AI Camera System for Professional "
            "Photography and Video Recording in Phantom Black Color"
        )
        result = optimizer.optimize(long_title)
        assert len(result) <= EBAY_TITLE_MAX_LENGTH
        assert long_title.startswith(result)


class TestBrandRemoval:

    def test_brand_removed_everywhere(self, optimizer):
        result = optimizer.optimize("Acme SuperWidget 3000 by Acme", brand="Acme")
        assert "acme" not in result.lower()
        assert result == "SuperWidget 3000 by"

    def test_brand_removed_case_insensitively(self, optimizer):
        result = optimizer.optimize("ANKER Nano Charger - anker", brand="Anker")
        assert result == "Nano Charger"

    def test_no_brand_leaves_title(self, optimizer):
        assert optimizer.optimize("Anker Nano Charger") == "Anker Nano Charger"

    def test_blank_brand_is_ignored(self, optimizer):
        assert TitleOptimizer.remove_brand("Anker Nano", "   ") == "Anker Nano"


class TestCleaning:

    def test_normalizes_whitespace(self, optimizer):
        assert optimizer.optimize("Product   Name \t With  Spaces") == "Product Name With Spaces"

    def test_trims_leading_and_trailing_dashes(self, optimizer):
        assert optimizer.optimize("-- Wireless Mouse - ") == "Wireless Mouse"

    def test_truncation_retrims_edges(self, optimizer):
        title = "A" * 78 + " - tail words"
        result = optimizer.optimize(title)
        assert result == "A" * 78


class TestAnalysis:

    def test_analysis_flags(self, optimizer):
        analysis = optimizer.optimize_with_analysis("Acme " + "x" * 100, brand="Acme")

        assert analysis.brand_removed is True
        assert analysis.was_truncated is True
        assert len(analysis.optimized) == EBAY_TITLE_MAX_LENGTH
        assert analysis.to_dict()["chars_saved"] == analysis.chars_saved > 0

    def test_analysis_for_untouched_title(self, optimizer):
        analysis = optimizer.optimize_with_analysis("Nano Charger")
        assert not analysis.brand_removed
        assert not analysis.was_truncated
