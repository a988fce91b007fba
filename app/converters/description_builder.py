"""
HTML description builder for eBay listings.

Generates an eBay-compliant HTML description from Amazon product copy.
All CSS is inline since eBay strips <style> tags.

Pipeline:
    1. Source text: the Amazon description, or the title if it is empty
    2. Filter: strip the brand and disallowed terms (warranty, returns,
       replacement, marketplace names) case-insensitively
    3. Sentences: split on line breaks and sentence punctuation, keep
       sentences longer than 10 characters, first 6 become bullets
    4. Images: 4 gallery slots; when fewer images exist, the first image
       fills the remaining slots
    5. Render: header band, two-column body (gallery | bullets),
       trust badges, footer call-to-action

Usage:
    builder = DescriptionBuilder()
    html = builder.build(title, description, brand, images)
"""

import re

MAX_BULLETS = 6
MIN_SENTENCE_LENGTH = 10
IMAGE_SLOTS = 4

# Terms eBay policy or the seller's own terms don't allow in listing copy.
DISALLOWED_TERMS: list[re.Pattern] = [
    re.compile(r"\b(?:lifetime\s+|limited\s+|manufacturer'?s?\s+)?warrant(?:y|ies|ied)\b", re.IGNORECASE),
    re.compile(r"\bguarantee[ds]?\b", re.IGNORECASE),
    re.compile(r"\b(?:free\s+|easy\s+|hassle[- ]free\s+)?returns?\b", re.IGNORECASE),
    re.compile(r"\brefunds?\b", re.IGNORECASE),
    re.compile(r"\breplacements?\b", re.IGNORECASE),
    re.compile(r"\bamazon(?:\.com)?\b", re.IGNORECASE),
    re.compile(r"\bprime\b", re.IGNORECASE),
    re.compile(r"\bwalmart\b", re.IGNORECASE),
    re.compile(r"\bebay\b", re.IGNORECASE),
]

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+|\n+")

TRUST_BADGES = [
    ("&#128666;", "Fast Shipping", "Ships quickly from the USA"),
    ("&#128230;", "Secure Packaging", "Carefully packed to arrive safely"),
    ("&#10004;", "Quality Checked", "Inspected before dispatch"),
]

_COLORS = {
    "primary": "#1F4E79",
    "accent": "#F5A623",
    "bg": "#FFFFFF",
    "bg_alt": "#F4F6F8",
    "border": "#DDE3EA",
    "text": "#222222",
    "text_secondary": "#5F6B7A",
}


class DescriptionBuilder:
    """
    Builds the eBay listing description from product copy and listing images.

    Features:
    - Sentence-level bullet extraction from Amazon feature text
    - Brand and disallowed-term filtering
    - Fixed 4-slot image gallery
    - HTML-escaped user content
    """

    # ─── Public API ──────────────────────────────────────────

    def build(
        self,
        title: str,
        description: str,
        brand: str = "",
        images: list[str] | None = None,
    ) -> str:
        """
        Build an HTML description for an eBay listing.

        Args:
            title: eBay listing title (already brand-stripped).
            description: Amazon description (newline-joined feature bullets).
            brand: Brand name to remove from the copy.
            images: Listing-ready image URLs (first one is the primary).

        Returns:
            HTML string for the eBay listing description.
        """
        bullets = self.extract_bullets(description or title, brand)
        slots = self.fill_image_slots(images or [])

        sections = [
            self._build_header(title),
            self._build_body(title, bullets, slots),
            self._build_trust_badges(),
            self._build_footer(),
        ]
        body = "\n".join(s for s in sections if s)
        return (
            f'<div style="font-family:Arial,Helvetica,sans-serif;'
            f"max-width:900px;margin:0 auto;background:{_COLORS['bg']};"
            f"border:1px solid {_COLORS['border']};border-radius:8px;"
            f'overflow:hidden;color:{_COLORS["text"]};">\n{body}\n</div>'
        )

    def extract_bullets(self, text: str, brand: str = "") -> list[str]:
        """Filter the text and return up to 6 sentences longer than 10 chars."""
        cleaned = self.filter_terms(text or "", brand)
        bullets: list[str] = []
        for sentence in _SENTENCE_SPLIT.split(cleaned):
            sentence = re.sub(r"\s+", " ", sentence).strip(" ,;:-")
            if len(sentence) > MIN_SENTENCE_LENGTH:
                bullets.append(sentence)
            if len(bullets) == MAX_BULLETS:
                break
        return bullets

    @staticmethod
    def filter_terms(text: str, brand: str = "") -> str:
        """Remove the brand and every disallowed term, case-insensitively."""
        if brand and brand.strip():
            text = re.sub(re.escape(brand.strip()), "", text, flags=re.IGNORECASE)
        for pattern in DISALLOWED_TERMS:
            text = pattern.sub("", text)
        # Collapse spaces left behind, but keep line breaks as sentence boundaries
        return re.sub(r"[ \t]{2,}", " ", text)

    @staticmethod
    def fill_image_slots(images: list[str]) -> list[str]:
        """Exactly 4 slots, padded with the first image. Empty if there are no images."""
        usable = [img for img in images if img][:IMAGE_SLOTS]
        if not usable:
            return []
        return usable + [usable[0]] * (IMAGE_SLOTS - len(usable))

    # ─── Sections ────────────────────────────────────────────

    def _build_header(self, title: str) -> str:
        return (
            f'<div style="background:{_COLORS["primary"]};color:#FFF;'
            f'padding:18px 24px;border-bottom:4px solid {_COLORS["accent"]};">'
            f'<h1 style="margin:0;font-size:22px;font-weight:700;'
            f'line-height:1.3;">{self._escape(title)}</h1>'
            f"</div>"
        )

    def _build_body(self, title: str, bullets: list[str], slots: list[str]) -> str:
        columns: list[str] = []

        if slots:
            thumbs = "".join(
                f'<img src="{self._escape(img)}" alt="Product image {i + 2}" '
                f'style="width:31%;height:90px;object-fit:contain;'
                f"border:1px solid {_COLORS['border']};border-radius:4px;"
                f'background:#FFF;" />'
                for i, img in enumerate(slots[1:])
            )
            columns.append(
                f'<div style="flex:0 0 360px;max-width:100%;">'
                f'<img src="{self._escape(slots[0])}" alt="{self._escape(title)}" '
                f'style="width:100%;max-height:360px;object-fit:contain;'
                f'border-radius:6px;" />'
                f'<div style="display:flex;gap:3%;margin-top:10px;">{thumbs}</div>'
                f"</div>"
            )

        if bullets:
            items = "".join(
                f'<li style="margin-bottom:8px;line-height:1.5;">{self._escape(b)}</li>'
                for b in bullets
            )
            columns.append(
                f'<div style="flex:1;min-width:240px;">'
                f'<h2 style="font-size:18px;color:{_COLORS["primary"]};'
                f'margin:0 0 12px 0;">Key Features</h2>'
                f'<ul style="padding-left:20px;margin:0;">{items}</ul>'
                f"</div>"
            )

        if not columns:
            return ""
        return (
            f'<div style="display:flex;gap:24px;padding:24px;'
            f'flex-wrap:wrap;align-items:flex-start;">{"".join(columns)}</div>'
        )

    def _build_trust_badges(self) -> str:
        badges = "".join(
            f'<div style="flex:1;min-width:160px;text-align:center;padding:12px;'
            f"background:{_COLORS['bg_alt']};border:1px solid {_COLORS['border']};"
            f'border-radius:6px;">'
            f'<div style="font-size:26px;">{icon}</div>'
            f'<div style="font-weight:700;margin-top:4px;">{label}</div>'
            f'<div style="font-size:12px;color:{_COLORS["text_secondary"]};">{blurb}</div>'
            f"</div>"
            for icon, label, blurb in TRUST_BADGES
        )
        return (
            f'<div style="display:flex;gap:12px;flex-wrap:wrap;'
            f'padding:0 24px 24px 24px;">{badges}</div>'
        )

    def _build_footer(self) -> str:
        return (
            f'<div style="text-align:center;padding:16px;'
            f'background:{_COLORS["primary"]};color:#FFF;">'
            f'<p style="margin:0;font-size:16px;font-weight:700;">'
            f"Buy with confidence &mdash; add to your cart today!</p>"
            f'<p style="margin:6px 0 0 0;font-size:12px;">'
            f"Questions? Message us any time, we reply fast.</p></div>"
        )

    @staticmethod
    def _escape(text: str) -> str:
        """Basic HTML escaping to prevent XSS."""
        return (
            text.replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
        )
