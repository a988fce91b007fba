"""
Product lookup orchestration service.

Runs the per-ASIN cache state machine:

    Absent / Stale     → fetch from provider → generate content → upsert
    Fresh-Incomplete   → generate content → upsert (no provider call)
    Fresh-Complete     → serve cached record (no write), unless a
                         regenerate is forced, which behaves like
                         Fresh-Incomplete

Content generation failures never block persisting provider data: the
record is written with an empty eBay sub-record instead. Provider
"not found", "unreachable" and records that fail model validation are
all reported as NOT_FOUND. In a batch, any per-ASIN failure becomes a
placeholder so sibling lookups are unaffected.

Usage:
    service = LookupService(store, provider, generator, ttl_seconds=2592000)
    result = await service.lookup("B09C5RG6KV")
    products = await service.lookup_batch(["B09C5RG6KV", "B000000000"])
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

import pydantic

from app.core.exceptions import BatchSizeError, InvalidAsinError, PersistenceError, ValidationError
from app.core.interfaces import IListingGenerator, IProductProvider, IProductStore
from app.core.logging_config import lookup_context
from app.core.models import (
    ListingContent,
    LookupResult,
    LookupStatus,
    Product,
    ProductState,
    is_valid_asin,
    normalize_asin,
)
from app.services import freshness

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 2_592_000  # 30 days
DEFAULT_BATCH_MAX = 20


def validate_asin(asin: str) -> str:
    """Normalize an ASIN and reject it if it is malformed."""
    normalized = normalize_asin(asin) if isinstance(asin, str) else ""
    if not is_valid_asin(normalized):
        raise InvalidAsinError(str(asin))
    return normalized


def validate_batch(asins: list[str], maximum: int = DEFAULT_BATCH_MAX) -> list[str]:
    """Check batch size bounds and every ASIN before any I/O happens."""
    if not isinstance(asins, list):
        raise ValidationError("asins must be an array")
    if not asins or len(asins) > maximum:
        raise BatchSizeError(size=len(asins), maximum=maximum)
    return [validate_asin(a) for a in asins]


class LookupService:
    """
    Orchestrates the product cache, provider, and content generator.

    All collaborators are injected; the service keeps no module-level state.
    """

    def __init__(
        self,
        store: IProductStore,
        provider: IProductProvider,
        generator: IListingGenerator,
        ttl_seconds: int = DEFAULT_CACHE_TTL,
        base_url: str = "",
        max_batch: int = DEFAULT_BATCH_MAX,
        clock: Callable[[], datetime] = freshness.utc_now,
    ):
        self._store = store
        self._provider = provider
        self._generator = generator
        self._ttl_seconds = ttl_seconds
        self._base_url = base_url
        self._max_batch = max_batch
        self._clock = clock

    # ─── Public API ──────────────────────────────────────────

    async def lookup(self, asin: str, regenerate: bool = False) -> LookupResult:
        """
        Look up one ASIN through the cache state machine.

        Args:
            asin: ASIN in any case; it is normalized before use.
            regenerate: Force listing content regeneration on a fresh record.

        Returns:
            LookupResult; ``status == NOT_FOUND`` when the provider had nothing.

        Raises:
            InvalidAsinError: Malformed ASIN (before any I/O).
            PersistenceError: Store unreachable or write rejected.
        """
        return await self._run(validate_asin(asin), force_regenerate=regenerate)

    async def lookup_batch(self, asins: list[str]) -> list[Product]:
        """
        Look up up to ``max_batch`` ASINs concurrently.

        The result has one entry per input ASIN, in input order. ASINs that
        could not be resolved come back as placeholder records.

        Raises:
            ValidationError: Empty batch, oversized batch, or malformed ASIN.
        """
        normalized = validate_batch(asins, self._max_batch)
        logger.info(f"Starting batch lookup of {len(normalized)} ASINs")

        products = await asyncio.gather(*(self._lookup_for_batch(a) for a in normalized))

        found = sum(1 for p in products if p.last_updated is not None)
        logger.info(f"Batch lookup finished: {found}/{len(products)} resolved")
        return list(products)

    async def regenerate(self, asin: str) -> LookupResult:
        """
        Regenerate listing content for an already-stored product.

        Never calls the provider. Returns NOT_FOUND if the ASIN has not been
        fetched yet.
        """
        asin = validate_asin(asin)
        existing = await self._store.get_by_asin(asin)
        state = freshness.classify(existing, self._ttl_seconds, self._clock())
        if existing is None:
            return LookupResult(asin=asin, status=LookupStatus.NOT_FOUND, state=state)
        return await self._regenerate_content(existing, state)

    # ─── State Machine ───────────────────────────────────────

    async def _run(self, asin: str, force_regenerate: bool = False) -> LookupResult:
        with lookup_context(asin):
            return await self._resolve(asin, force_regenerate)

    async def _resolve(self, asin: str, force_regenerate: bool) -> LookupResult:
        existing = await self._store.get_by_asin(asin)
        state = freshness.classify(existing, self._ttl_seconds, self._clock())
        logger.debug(f"{asin} is {state.value}")

        if freshness.needs_refetch(state):
            return await self._fetch_and_store(asin, state)

        if freshness.needs_content(state, force_regenerate):
            return await self._regenerate_content(existing, state)

        logger.info(f"Returned {asin} from cache")
        return LookupResult(asin=asin, status=LookupStatus.CACHED, state=state, product=existing)

    async def _fetch_and_store(self, asin: str, state: ProductState) -> LookupResult:
        fetched = await self._provider.fetch(asin)
        if not fetched.found:
            logger.info(f"{asin} not available from provider ({fetched.outcome.value})")
            return LookupResult(asin=asin, status=LookupStatus.NOT_FOUND, state=state)

        try:
            draft = Product(**fetched.fields)
        except pydantic.ValidationError as e:
            logger.warning(
                f"Provider returned an unusable record for {asin}: {e.error_count()} invalid fields"
            )
            return LookupResult(asin=asin, status=LookupStatus.NOT_FOUND, state=state)

        content, error = await self._generate(draft)

        fields = {
            **fetched.fields,
            **content.to_ebay_fields(),
            "last_updated": self._clock(),
        }
        product = await self._store.upsert(asin, fields)
        logger.info(f"Saved {asin} from provider ({state.value})")
        return LookupResult(
            asin=asin,
            status=LookupStatus.FETCHED,
            state=state,
            product=product,
            content_error=error,
        )

    async def _regenerate_content(self, existing: Product, state: ProductState) -> LookupResult:
        content, error = await self._generate(existing)
        if error:
            # Keep whatever content the record already has
            return LookupResult(
                asin=existing.asin,
                status=LookupStatus.CACHED,
                state=state,
                product=existing,
                content_error=error,
            )

        fields = {**content.to_ebay_fields(), "last_updated": self._clock()}
        product = await self._store.upsert(existing.asin, fields)
        logger.info(f"eBay content generated and saved for {existing.asin}")
        return LookupResult(
            asin=existing.asin,
            status=LookupStatus.GENERATED,
            state=state,
            product=product,
        )

    async def _generate(self, product: Product) -> tuple[ListingContent, str]:
        """Run the content generator; on failure return empty content and the reason."""
        try:
            content = await self._generator.generate_listing_content(product, self._base_url)
            return content, ""
        except Exception as e:
            logger.error(
                f"Content generation failed for {product.asin}: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return ListingContent.empty(), f"{type(e).__name__}: {e}"

    async def _lookup_for_batch(self, asin: str) -> Product:
        try:
            result = await self._run(asin)
        except PersistenceError as e:
            logger.error(f"Batch lookup of {asin} failed on store: {e.message}")
            return Product.placeholder(asin)
        except Exception as e:
            logger.error(f"Batch lookup of {asin} failed: {type(e).__name__}: {e}", exc_info=True)
            return Product.placeholder(asin)

        if result.found:
            return result.product
        return Product.placeholder(asin)
