"""
eBay listing content generator. Derives listing copy from a cached product.

Independent of persistence: takes a Product, returns ListingContent.
"""

import logging

from app.converters.description_builder import DescriptionBuilder
from app.converters.title_optimizer import TitleOptimizer
from app.core.interfaces import IListingGenerator
from app.core.models import ListingContent, Product
from app.services.image_service import ImageService

logger = logging.getLogger(__name__)


class EbayConverter(IListingGenerator):
    """
    Converts Amazon product fields into eBay listing content.

    Handles:
    - Title: brand removal, whitespace cleanup, 80 char max
    - Description: filtered feature bullets in the listing HTML template
    - Images: one post-processing pass over all product images
    """

    def __init__(
        self,
        image_service: ImageService,
        title_optimizer: TitleOptimizer | None = None,
        description_builder: DescriptionBuilder | None = None,
    ):
        self._image_service = image_service
        self._title_optimizer = title_optimizer or TitleOptimizer()
        self._description_builder = description_builder or DescriptionBuilder()

    async def generate_listing_content(self, product: Product, base_url: str) -> ListingContent:
        """Generate eBay title, description, and listing images for a product."""
        logger.info(f"Generating eBay content for {product.asin} ({product.brand})")

        images = await self._image_service.process_listing_images(
            product.images, product.asin, base_url
        )
        if not images and product.images:
            images = [product.images[0]]

        title = self._title_optimizer.optimize(product.title, product.brand)
        description = self._description_builder.build(
            title=title,
            description=product.description or product.title,
            brand=product.brand,
            images=images,
        )

        return ListingContent(
            title=title,
            description=description,
            image=images[0] if images else "",
            image_links=images,
        )
