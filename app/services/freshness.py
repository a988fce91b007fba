"""
Cache freshness policy.

Pure functions over plain data: freshness is derived at read time from
``last_updated`` and a TTL, never stored.

A record is stale when it is strictly older than the TTL:
``now - last_updated > ttl``. A record exactly ``ttl`` seconds old is
still fresh.
"""

from datetime import UTC, datetime

from app.core.models import Product, ProductState


def utc_now() -> datetime:
    return datetime.now(UTC)


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def age_seconds(last_updated: datetime, now: datetime | None = None) -> float:
    now = _as_utc(now or utc_now())
    return (now - _as_utc(last_updated)).total_seconds()


def is_stale(last_updated: datetime | None, ttl_seconds: int, now: datetime | None = None) -> bool:
    """True when the record must be re-fetched from the provider."""
    if last_updated is None:
        return True
    return age_seconds(last_updated, now) > ttl_seconds


def classify(
    product: Product | None,
    ttl_seconds: int,
    now: datetime | None = None,
) -> ProductState:
    """Place a stored record in the lookup state machine."""
    if product is None:
        return ProductState.ABSENT
    if is_stale(product.last_updated, ttl_seconds, now):
        return ProductState.STALE
    if not product.ebay.is_generated:
        return ProductState.FRESH_INCOMPLETE
    return ProductState.FRESH_COMPLETE


def needs_refetch(state: ProductState) -> bool:
    return state in (ProductState.ABSENT, ProductState.STALE)


def needs_content(state: ProductState, force_regenerate: bool = False) -> bool:
    """Fresh records get content when it is missing or explicitly requested."""
    if state == ProductState.FRESH_INCOMPLETE:
        return True
    return state == ProductState.FRESH_COMPLETE and force_regenerate
