"""
Product API endpoints.

Provides:
- GET /api/v1/products/{asin}: Look up one ASIN (cache, provider, content)
- POST /api/v1/products: Batch lookup of up to 20 ASINs
- POST /api/v1/products/{asin}/regenerate: Regenerate eBay listing content
- GET /api/v1/products: List cached products
- PUT /api/v1/products/{asin}: Operator edit of product fields
- POST /api/v1/products/{asin}/assign: Link a product to an account/category
- PUT /api/v1/products/{asin}/template/{column_id}: Set one template value
- GET/PUT /api/v1/products/{asin}/spreadsheet: Per-product spreadsheet

Responses use camelCase field names.
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import Field

from app.api.dependencies import get_catalog_service, get_lookup_service
from app.core.exceptions import ContentGenerationError, RecordNotFoundError
from app.core.models import CamelModel, Product, Spreadsheet, TemplateValue
from app.services.catalog_service import CatalogService
from app.services.lookup_service import LookupService

router = APIRouter(prefix="/products", tags=["Products"])


# ─── Request Schemas ───────────────────────────────────────


class BatchLookupRequest(CamelModel):
    """Request body for batch lookup. Validated by the lookup service so
    malformed input gets the same 400 as a bad ASIN."""
    asins: Any = Field(default=None, description="ASINs to look up (1 to 20)")


class EbayUpdate(CamelModel):
    title: str | None = None
    description: str | None = None
    image: str | None = None
    image_links: str | None = None
    price: str | None = None
    item_id: str | None = None


class ProductUpdate(CamelModel):
    """Operator-editable product fields. Omitted fields are left unchanged."""
    title: str | None = None
    brand: str | None = None
    price: str | None = None
    description: str | None = None
    images: list[str] | None = None
    rating: float | None = Field(default=None, ge=0, le=5)
    review_count: int | None = Field(default=None, ge=0)
    ebay: EbayUpdate | None = None


class AssignRequest(CamelModel):
    account_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None


class TemplateValueRequest(CamelModel):
    value: TemplateValue = None


# ─── Lookup ────────────────────────────────────────────────


@router.get("/{asin}", summary="Look up a product by ASIN")
async def get_product(
    asin: str,
    regenerate: bool = Query(default=False, description="Force eBay content regeneration"),
    service: LookupService = Depends(get_lookup_service),
) -> Product:
    """
    Return the cached product, fetching it from the provider when it is
    missing or stale and generating eBay content when it has none.
    """
    result = await service.lookup(asin, regenerate=regenerate)
    if not result.found:
        raise RecordNotFoundError(
            "Product not found or API unavailable",
            details={"asin": result.asin},
        )
    return result.product


@router.post("", summary="Batch product lookup")
async def lookup_products(
    request: BatchLookupRequest,
    service: LookupService = Depends(get_lookup_service),
) -> list[Product]:
    """
    Look up several ASINs concurrently.

    One entry per requested ASIN in request order; unresolved ASINs come
    back as ``{"asin": ..., "title": "Not found"}`` placeholders.
    """
    return await service.lookup_batch(request.asins)


@router.post("/{asin}/regenerate", summary="Regenerate eBay listing content")
async def regenerate_content(
    asin: str,
    service: LookupService = Depends(get_lookup_service),
) -> Product:
    """Regenerate eBay content for a product that has already been fetched."""
    result = await service.regenerate(asin)
    if not result.found:
        raise RecordNotFoundError(
            "Product not found. Fetch the product first.",
            details={"asin": result.asin},
        )
    if result.content_error:
        raise ContentGenerationError(
            f"Failed to generate eBay content: {result.content_error}",
            details={"asin": result.asin},
        )
    return result.product


# ─── Catalog ───────────────────────────────────────────────


@router.get("", summary="List cached products")
async def list_products(
    account_id: uuid.UUID | None = Query(default=None, alias="accountId"),
    category_id: uuid.UUID | None = Query(default=None, alias="categoryId"),
    limit: int = Query(default=100, ge=1, le=1000, description="Max results"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Product]:
    return await catalog.list_products(account_id, category_id, limit=limit, offset=offset)


@router.put("/{asin}", summary="Edit a product")
async def update_product(
    asin: str,
    request: ProductUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Product:
    return await catalog.update_product(asin, request.model_dump(exclude_unset=True))


@router.post("/{asin}/assign", summary="Assign a product to an account/category")
async def assign_product(
    asin: str,
    request: AssignRequest,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Product:
    """
    Link a product to an account and optionally a category.

    Returns 409 if the product already belongs to a different account.
    """
    return await catalog.assign_product(asin, request.account_id, request.category_id)


@router.put("/{asin}/template/{column_id}", summary="Set a template value")
async def set_template_value(
    asin: str,
    column_id: str,
    request: TemplateValueRequest,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Product:
    return await catalog.set_template_value(asin, column_id, request.value)


@router.get("/{asin}/spreadsheet", summary="Get a product's spreadsheet")
async def get_spreadsheet(
    asin: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Spreadsheet:
    return await catalog.get_spreadsheet(asin)


@router.put("/{asin}/spreadsheet", summary="Save a product's spreadsheet")
async def save_spreadsheet(
    asin: str,
    request: Spreadsheet,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Spreadsheet:
    return await catalog.save_spreadsheet(asin, request)
