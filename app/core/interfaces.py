"""
Abstract base classes defining the core contracts for ASIN Lookup.

The lookup orchestrator depends only on these interfaces, so the catalog
provider, the listing content generator, the image host, and the product
store can each be swapped (or mocked) independently.
"""

from abc import ABC, abstractmethod
from typing import Any

from app.core.models import ListingContent, Product, ProviderResult


class IProductProvider(ABC):
    """Interface for upstream catalog providers."""

    @abstractmethod
    async def fetch(self, asin: str) -> ProviderResult:
        """
        Fetch and normalize one product from the upstream catalog.

        Args:
            asin: Upper-cased ASIN.

        Returns:
            ProviderResult. Never raises: network failures, timeouts and
            malformed responses are reported as ``FetchOutcome.UNAVAILABLE``.
        """
        ...


class IListingGenerator(ABC):
    """Interface for eBay listing content generation."""

    @abstractmethod
    async def generate_listing_content(self, product: Product, base_url: str) -> ListingContent:
        """
        Derive eBay listing title, description and images from a product.

        Args:
            product: Product carrying the Amazon-sourced fields.
            base_url: Public base URL for locally served image fallbacks.

        Returns:
            ListingContent.

        Raises:
            Exception: Any failure propagates; the orchestrator recovers.
        """
        ...


class IImageHost(ABC):
    """Interface for third-party image hosting."""

    @abstractmethod
    async def upload(self, image_bytes: bytes, name: str) -> str | None:
        """
        Upload an image and return its hosted URL, or None on any failure.
        """
        ...


class IProductStore(ABC):
    """Key-value store semantics over ASIN."""

    @abstractmethod
    async def get_by_asin(self, asin: str) -> Product | None:
        """
        Read a product by ASIN.

        Raises:
            PersistenceError: If the store is unreachable.
        """
        ...

    @abstractmethod
    async def upsert(self, asin: str, fields: dict[str, Any]) -> Product:
        """
        Atomically insert-or-update the record keyed by ``asin``.

        Only the keys present in ``fields`` are written on update; on insert,
        absent keys take their column defaults.

        Raises:
            PersistenceError: If the write is rejected or the store is unreachable.
        """
        ...
