"""
Amazon catalog provider client.

Fetches product data for one ASIN from the amazon-helper catalog API
(a PA-API style JSON proxy) and normalizes the nested
``ItemsResult.Items[0]`` document into flat product fields.
"""

import logging
import re
from typing import Any

import httpx

from app.core.exceptions import ProviderUnavailableError
from app.core.interfaces import IProductProvider
from app.core.models import FetchOutcome, ProductSource, ProviderResult

logger = logging.getLogger(__name__)

DEFAULT_BRAND = "Unbranded"
DEFAULT_TITLE = "Unknown"
DEFAULT_PRICE = "Price not available"
MAX_STAR_RATING = 5.0


class AmazonHelperClient(IProductProvider):
    """
    Client for the amazon-helper catalog endpoint.

    One bounded-timeout GET per ASIN, no retries. "Provider unreachable"
    and "ASIN not found" are both negative results for the caller; only
    the log line tells them apart.

    Usage:
        client = AmazonHelperClient(base_url=settings.provider_base_url)
        result = await client.fetch("B09C5RG6KV")
        if result.found:
            fields = result.fields
    """

    SOURCE_NAME = "amazon-helper"

    def __init__(
        self,
        base_url: str = "https://amazon-helper.vercel.app/api/items",
        timeout: float = 30.0,
        user_agent: str = "Mozilla/5.0",
    ):
        self._base_url = base_url
        self._timeout = timeout
        self._user_agent = user_agent

    async def fetch(self, asin: str) -> ProviderResult:
        """Fetch one ASIN. Never raises."""
        asin = asin.upper()
        logger.info(f"[{self.SOURCE_NAME}] Fetching {asin} from provider")

        try:
            payload = await self._get_json(asin)
            item = self._first_item(payload)
        except ProviderUnavailableError as e:
            logger.warning(
                f"[{self.SOURCE_NAME}] Provider unavailable for {asin}: {e.message}",
                extra={"asin": asin, **e.details},
            )
            return ProviderResult(asin=asin, outcome=FetchOutcome.UNAVAILABLE, error=e.message)

        if item is None:
            logger.info(f"[{self.SOURCE_NAME}] No item found for {asin}")
            return ProviderResult(asin=asin, outcome=FetchOutcome.NOT_FOUND)

        try:
            fields = self.normalize_item(item, asin)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(
                f"[{self.SOURCE_NAME}] Malformed item for {asin}: {e}",
                extra={"asin": asin},
            )
            return ProviderResult(
                asin=asin,
                outcome=FetchOutcome.UNAVAILABLE,
                error=f"Malformed provider item: {e}",
            )

        logger.info(
            f"[{self.SOURCE_NAME}] Fetched {asin}: '{fields['title'][:50]}' "
            f"({len(fields['images'])} images)"
        )
        return ProviderResult(asin=asin, outcome=FetchOutcome.FOUND, fields=fields)

    async def _get_json(self, asin: str) -> Any:
        """Issue the outbound request and decode the JSON body."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.get(
                    self._base_url,
                    params={"asin": asin},
                    headers={"User-Agent": self._user_agent},
                )
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(
                f"Timed out after {self._timeout:.0f}s",
                details={"error_type": type(e).__name__},
            ) from e
        except httpx.HTTPStatusError as e:
            raise ProviderUnavailableError(
                f"HTTP {e.response.status_code}",
                details={"status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"{type(e).__name__}: {e}",
                details={"error_type": type(e).__name__},
            ) from e
        except ValueError as e:
            raise ProviderUnavailableError(
                "Response body is not valid JSON",
                details={"error_type": type(e).__name__},
            ) from e

    @staticmethod
    def _first_item(payload: Any) -> dict | None:
        """Return ``ItemsResult.Items[0]`` or None if there is no item."""
        if not isinstance(payload, dict):
            raise ProviderUnavailableError("Response body is not a JSON object")
        items = (payload.get("ItemsResult") or {}).get("Items") or []
        if not isinstance(items, list):
            raise ProviderUnavailableError("ItemsResult.Items is not a list")
        if not items or not items[0]:
            return None
        return items[0]

    # ─── Normalization ────────────────────────────────────────

    @classmethod
    def normalize_item(cls, item: dict, asin: str) -> dict[str, Any]:
        """Flatten one provider item into product store fields."""
        info = item.get("ItemInfo") or {}
        by_line = info.get("ByLineInfo") or {}

        brand = (
            _display_value(by_line.get("Brand"))
            or _display_value(by_line.get("Manufacturer"))
            or DEFAULT_BRAND
        )
        title = cls._strip_brand(_display_value(info.get("Title")) or DEFAULT_TITLE, brand)

        listings = (item.get("Offers") or {}).get("Listings") or []
        display_amount = ""
        if listings:
            display_amount = str(((listings[0] or {}).get("Price") or {}).get("DisplayAmount") or "")
        # "$25.99 ($0.65 / Count)" -> "$25.99"
        price = display_amount.split(" ")[0] if display_amount.strip() else DEFAULT_PRICE

        features = (info.get("Features") or {}).get("DisplayValues") or []
        description = "\n".join(str(f) for f in features)

        reviews = item.get("CustomerReviews") or {}
        rating = _star_rating((reviews.get("StarRating") or {}).get("Value"))
        review_count = _review_count(reviews.get("Count"))

        return {
            "asin": asin.upper(),
            "title": title,
            "brand": brand,
            "price": price,
            "description": description,
            "images": cls._collect_images(item.get("Images") or {}),
            "rating": rating,
            "review_count": review_count,
            "source": ProductSource.AMAZON_HELPER.value,
        }

    @staticmethod
    def _strip_brand(title: str, brand: str) -> str:
        """Remove every case-insensitive occurrence of the brand from the title."""
        if brand and brand.lower() in title.lower():
            title = re.sub(re.escape(brand), "", title, flags=re.IGNORECASE).strip()
        return title

    @staticmethod
    def _collect_images(images: dict) -> list[str]:
        """Primary, then variants, then alternates; de-duplicated in first-seen order."""
        urls: list[str] = []

        def add(entry: dict | None) -> None:
            url = ((entry or {}).get("Large") or {}).get("URL")
            if url and url not in urls:
                urls.append(url)

        add(images.get("Primary"))
        for variant in images.get("Variants") or []:
            add(variant)
        for alternate in images.get("Alternate") or []:
            add(alternate)
        return urls


def _display_value(node: dict | None) -> str:
    return str((node or {}).get("DisplayValue") or "")


def _star_rating(value: Any) -> float | None:
    """Star rating on the 0-5 scale, or None when missing or out of range."""
    try:
        rating = float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None
    if rating is None or not 0 <= rating <= MAX_STAR_RATING:
        return None
    return rating


def _review_count(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0
