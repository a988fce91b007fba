"""
eBay listing title generation.

Transforms an Amazon product title into an eBay title within the
80-character limit.

Pipeline:
    1. Remove brand: every case-insensitive occurrence
    2. Clean: collapse whitespace
    3. Trim: strip leading/trailing dashes and spaces
    4. Truncate: hard cut at 80 chars, then re-trim
"""

import re
from dataclasses import dataclass

EBAY_TITLE_MAX_LENGTH = 80

_EDGE_JUNK = " -–—"


@dataclass
class TitleAnalysis:
    """Analysis result from the optimizer for debugging/logging."""

    original: str
    optimized: str
    brand_removed: bool = False
    was_truncated: bool = False

    @property
    def chars_saved(self) -> int:
        return len(self.original) - len(self.optimized)

    def to_dict(self) -> dict:
        return {
            "original": self.original,
            "optimized": self.optimized,
            "chars_saved": self.chars_saved,
            "brand_removed": self.brand_removed,
            "was_truncated": self.was_truncated,
        }


class TitleOptimizer:
    """
    Builds eBay titles from Amazon titles.

    Usage:
        optimizer = TitleOptimizer()
        title = optimizer.optimize("Acme SuperWidget 3000 by Acme", brand="Acme")
        # → "SuperWidget 3000 by"
    """

    def optimize(self, title: str, brand: str = "", max_length: int = EBAY_TITLE_MAX_LENGTH) -> str:
        return self.optimize_with_analysis(title, brand, max_length).optimized

    def optimize_with_analysis(
        self,
        title: str,
        brand: str = "",
        max_length: int = EBAY_TITLE_MAX_LENGTH,
    ) -> TitleAnalysis:
        analysis = TitleAnalysis(original=title or "", optimized="")
        if not title:
            return analysis

        result = self.remove_brand(title, brand)
        analysis.brand_removed = result != title

        result = self._clean(result)

        if len(result) > max_length:
            result = result[:max_length].strip(_EDGE_JUNK)
            analysis.was_truncated = True

        analysis.optimized = result
        return analysis

    @staticmethod
    def remove_brand(text: str, brand: str) -> str:
        """Remove all case-insensitive occurrences of ``brand`` from ``text``."""
        if not brand or not brand.strip():
            return text
        return re.sub(re.escape(brand.strip()), "", text, flags=re.IGNORECASE)

    @staticmethod
    def _clean(title: str) -> str:
        title = re.sub(r"\s+", " ", title)
        return title.strip(_EDGE_JUNK)
