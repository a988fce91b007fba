"""
Integration tests for the full lookup pipeline.

Uses REAL ProductStore (SQLite), EbayConverter, TitleOptimizer,
DescriptionBuilder and ImageService instances; only the catalog provider
and the network image download are stubbed.

Verifies that data flows correctly between components:
    - provider fields land in the store with generated eBay content
    - cache states drive whether the provider and generator run
    - operator-owned columns survive refreshes and regeneration
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select

from app.converters.ebay_converter import EbayConverter
from app.core.models import LookupStatus, ProductState
from app.db.database import Database
from app.db.models import Product as ProductRow
from app.db.repositories import ProductStore
from app.services.image_service import ImageService
from app.services.lookup_service import LookupService

ASIN = "B09C5RG6KV"
BASE_URL = "http://localhost:8000"


async def _product_rows(database: Database) -> int:
    async with database.session() as session:
        return await session.scalar(select(func.count()).select_from(ProductRow))


class _Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
async def database(tmp_path):
    db = Database.from_url(f"sqlite+aiosqlite:///{tmp_path / 'pipeline.db'}")
    await db.init(create_tables=True)
    yield db
    await db.dispose()


@pytest.fixture
def clock() -> _Clock:
    return _Clock(datetime(2026, 10, 19, 12, 0, tzinfo=UTC))


@pytest.fixture
def image_service(tmp_path) -> ImageService:
    # No overlay on disk: listing images fall back to the originals
    return ImageService(tmp_path / "processed", tmp_path / "missing-overlay.png")


@pytest.fixture
def service(database, provider, image_service, clock) -> LookupService:
    return LookupService(
        store=ProductStore(database),
        provider=provider,
        generator=EbayConverter(image_service),
        ttl_seconds=3600,
        base_url=BASE_URL,
        clock=clock,
    )


@pytest.fixture
def anker(provider, provider_fields):
    provider.found(
        ASIN,
        {
            **provider_fields,
            "description": (
                "Ultra-Compact: The cube-shaped charger is 38% smaller than the original.\n"
                "Fast Charging: Power up an iPhone 13 to 50% in 25 minutes.\n"
                "What You Get: Anker 521 Charger, welcome guide, and lifetime warranty."
            ),
        },
    )
    return provider_fields


class TestLookupPipeline:

    async def test_first_lookup_fetches_generates_and_persists(self, service, database, anker):
        result = await service.lookup(ASIN.lower())

        assert result.status == LookupStatus.FETCHED
        assert result.state == ProductState.ABSENT
        assert result.content_error == ""

        stored = await ProductStore(database).get_by_asin(ASIN)
        assert stored == result.product
        assert stored.title == anker["title"]
        assert stored.ebay.title == "USB C Charger 40W, 521 Charger (Nano Pro)"
        assert stored.ebay.image == anker["images"][0]
        assert stored.ebay.image_links == " | ".join(anker["images"])
        assert "Fast Charging" in stored.ebay.description
        assert "warranty" not in stored.ebay.description.lower()
        assert "anker" not in stored.ebay.description.lower()

    async def test_fresh_record_is_served_without_calls(self, service, database, provider, anker, clock):
        await service.lookup(ASIN)
        assert await _product_rows(database) == 1
        clock.now += timedelta(minutes=30)

        with patch.object(EbayConverter, "generate_listing_content", AsyncMock()) as generate:
            result = await service.lookup(ASIN)

        assert result.status == LookupStatus.CACHED
        assert result.state == ProductState.FRESH_COMPLETE
        assert provider.calls == [ASIN]
        generate.assert_not_awaited()
        assert await _product_rows(database) == 1

    async def test_stale_record_is_refetched_and_keeps_operator_columns(
        self, service, database, provider, anker, clock
    ):
        await service.lookup(ASIN)
        store = ProductStore(database)
        await store.upsert(ASIN, {"ebay_price": "29.99", "template_values": {"col_a": "bin 4"}})

        clock.now += timedelta(hours=2)
        provider.found(ASIN, {**anker, "price": "$19.99"})
        result = await service.lookup(ASIN)

        assert result.status == LookupStatus.FETCHED
        assert result.state == ProductState.STALE
        assert provider.calls == [ASIN, ASIN]
        assert result.product.price == "$19.99"
        assert result.product.ebay.price == "29.99"
        assert result.product.template_values == {"col_a": "bin 4"}
        assert result.product.last_updated == clock.now
        assert await _product_rows(database) == 1

    async def test_fresh_incomplete_generates_without_fetch(self, service, database, provider, anker):
        await ProductStore(database).upsert(
            ASIN, {**anker, "last_updated": datetime(2026, 10, 19, 11, 30, tzinfo=UTC)}
        )

        result = await service.lookup(ASIN)

        assert result.status == LookupStatus.GENERATED
        assert result.state == ProductState.FRESH_INCOMPLETE
        assert provider.calls == []
        assert result.product.ebay.title

    async def test_content_failure_still_persists_provider_data(self, service, database, anker):
        with patch.object(
            EbayConverter, "generate_listing_content", AsyncMock(side_effect=RuntimeError("boom"))
        ):
            result = await service.lookup(ASIN)

        assert result.status == LookupStatus.FETCHED
        assert result.content_error == "RuntimeError: boom"
        stored = await ProductStore(database).get_by_asin(ASIN)
        assert stored.title == anker["title"]
        assert stored.ebay.title == ""

    async def test_batch_mixes_hits_and_placeholders(self, service, anker):
        products = await service.lookup_batch(["B000000000", ASIN, ASIN])

        assert [p.asin for p in products] == ["B000000000", ASIN, ASIN]
        assert products[0].title == "Not found"
        assert products[1].title == anker["title"]
        assert products[2].title == anker["title"]
