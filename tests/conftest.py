"""
Shared test fixtures for the ASIN Lookup test suite.
"""

from datetime import UTC, datetime
from typing import Any

import pytest

from app.core.interfaces import IListingGenerator, IProductProvider, IProductStore
from app.core.models import (
    EbayListing,
    FetchOutcome,
    ListingContent,
    Product,
    ProviderResult,
)


@pytest.fixture
def provider_item() -> dict:
    """A realistic amazon-helper ``ItemsResult.Items[0]`` document."""
    return {
        "ASIN": "B09C5RG6KV",
        "ItemInfo": {
            "Title": {"DisplayValue": "Anker USB C Charger 40W, 521 Charger (Nano Pro)"},
            "ByLineInfo": {
                "Brand": {"DisplayValue": "Anker"},
                "Manufacturer": {"DisplayValue": "Anker Innovations"},
            },
            "Features": {
                "DisplayValues": [
                    "Ultra-Compact: The cube-shaped charger is 38% smaller than the original.",
                    "Fast Charging: Power up an iPhone 13 to 50% in 25 minutes.",
                    "What You Get: Anker 521 Charger, welcome guide, and lifetime warranty.",
                ]
            },
        },
        "Offers": {"Listings": [{"Price": {"DisplayAmount": "$25.99 ($0.65 / Count)"}}]},
        "CustomerReviews": {"StarRating": {"Value": 4.7}, "Count": 15234},
        "Images": {
            "Primary": {"Large": {"URL": "https://m.media-amazon.com/images/I/primary.jpg"}},
            "Variants": [
                {"Large": {"URL": "https://m.media-amazon.com/images/I/variant1.jpg"}},
                {"Large": {"URL": "https://m.media-amazon.com/images/I/primary.jpg"}},
            ],
            "Alternate": [
                {"Large": {"URL": "https://m.media-amazon.com/images/I/alt1.jpg"}},
            ],
        },
    }


@pytest.fixture
def provider_payload(provider_item) -> dict:
    return {"ItemsResult": {"Items": [provider_item]}}


@pytest.fixture
def provider_fields() -> dict:
    """Normalized provider fields as the store receives them."""
    return {
        "asin": "B09C5RG6KV",
        "title": "USB C Charger 40W, 521 Charger (Nano Pro)",
        "brand": "Anker",
        "price": "$25.99",
        "description": "Ultra-Compact: The cube-shaped charger is 38% smaller than the original.",
        "images": [
            "https://m.media-amazon.com/images/I/primary.jpg",
            "https://m.media-amazon.com/images/I/variant1.jpg",
        ],
        "rating": 4.7,
        "review_count": 15234,
        "source": "amazon-helper",
    }


@pytest.fixture
def complete_product(provider_fields) -> Product:
    """A fresh product that already has eBay content."""
    return Product(
        **provider_fields,
        ebay=EbayListing(
            title="USB C Charger 40W, 521 Charger (Nano Pro)",
            description="<div>listing</div>",
            image="https://i.ibb.co/abc/B09C5RG6KV-1a2b3c4d.jpg",
            image_links="https://i.ibb.co/abc/B09C5RG6KV-1a2b3c4d.jpg",
            price="29.99",
            item_id="394857261034",
        ),
        last_updated=datetime(2026, 1, 1, tzinfo=UTC),
    )


# ─── In-memory collaborators ─────────────────────────────────


class InMemoryStore(IProductStore):
    """Dict-backed product store with the same merge semantics as ProductStore."""

    def __init__(self, products: list[Product] | None = None):
        self.rows: dict[str, dict[str, Any]] = {}
        self.reads = 0
        self.writes: list[tuple[str, dict]] = []
        for product in products or []:
            self.put(product)

    def put(self, product: Product) -> None:
        data = product.model_dump()
        ebay = data.pop("ebay")
        data.update({f"ebay_{k}": v for k, v in ebay.items()})
        self.rows[product.asin] = data

    async def get_by_asin(self, asin: str) -> Product | None:
        self.reads += 1
        row = self.rows.get(asin)
        return self._to_product(row) if row else None

    async def upsert(self, asin: str, fields: dict[str, Any]) -> Product:
        self.writes.append((asin, dict(fields)))
        row = self.rows.setdefault(asin, {"asin": asin})
        incoming = {k: v for k, v in fields.items() if k != "asin"}
        stored = row.get("last_updated")
        if stored and incoming.get("last_updated") and stored > incoming["last_updated"]:
            incoming["last_updated"] = stored
        row.update(incoming)
        return self._to_product(row)

    @staticmethod
    def _to_product(row: dict) -> Product:
        data = dict(row)
        ebay = {k[len("ebay_"):]: data.pop(k) for k in list(data) if k.startswith("ebay_")}
        return Product(**data, ebay=EbayListing(**ebay))


class StubProvider(IProductProvider):
    """Provider returning canned results and recording calls."""

    def __init__(self, results: dict[str, ProviderResult] | None = None):
        self.results = results or {}
        self.calls: list[str] = []

    async def fetch(self, asin: str) -> ProviderResult:
        self.calls.append(asin)
        return self.results.get(asin, ProviderResult(asin=asin, outcome=FetchOutcome.NOT_FOUND))

    def found(self, asin: str, fields: dict) -> None:
        self.results[asin] = ProviderResult(
            asin=asin, outcome=FetchOutcome.FOUND, fields={**fields, "asin": asin}
        )


class StubGenerator(IListingGenerator):
    """Generator producing deterministic content, or raising ``error``."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[str] = []

    async def generate_listing_content(self, product: Product, base_url: str) -> ListingContent:
        self.calls.append(product.asin)
        if self.error is not None:
            raise self.error
        images = product.images[:1]
        return ListingContent(
            title=f"eBay {product.title}"[:80],
            description=f"<div>{product.title}</div>",
            image=images[0] if images else "",
            image_links=images,
        )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def generator() -> StubGenerator:
    return StubGenerator()
