"""
Pydantic ↔ ORM mapping helpers for ASIN Lookup.

Converts SQLAlchemy rows (Product, Account, Category) into the domain
models the pipeline and API work with. The flat ``ebay_*`` columns are
folded back into the nested ``EbayListing`` sub-record here.

Usage:
    from app.db.mappers import product_from_row

    product = product_from_row(row)
"""

from datetime import UTC, datetime

from app.core.models import (
    Account,
    Category,
    EbayListing,
    Product,
    Spreadsheet,
    TemplateColumn,
)
from app.db import models as orm


def product_from_row(row: orm.Product) -> Product:
    """
    Map a Product ORM row to the Product domain model.

    Handles None and non-collection JSON values by substituting safe
    defaults, since rows written by older tools may be loosely shaped.
    """
    return Product(
        asin=row.asin,
        title=row.title or "",
        brand=row.brand or "",
        price=row.price or "",
        description=row.description or "",
        images=row.images if isinstance(row.images, list) else [],
        rating=row.rating,
        review_count=row.review_count or 0,
        source=row.source,
        ebay=EbayListing(
            title=row.ebay_title,
            description=row.ebay_description,
            image=row.ebay_image,
            image_links=row.ebay_image_links,
            price=row.ebay_price,
            item_id=row.ebay_item_id,
        ),
        last_updated=_as_utc(row.last_updated),
        account_id=row.account_id,
        category_id=row.category_id,
        template_values=row.template_values if isinstance(row.template_values, dict) else {},
        spreadsheet=Spreadsheet.model_validate(row.spreadsheet or {}),
    )


def _as_utc(moment: datetime | None) -> datetime | None:
    # SQLite drops the offset; every stored timestamp is UTC
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def ebay_columns(ebay: EbayListing) -> dict[str, str]:
    """Flatten an EbayListing into its ``ebay_*`` column values."""
    return {
        "ebay_title": ebay.title,
        "ebay_description": ebay.description,
        "ebay_image": ebay.image,
        "ebay_image_links": ebay.image_links,
        "ebay_price": ebay.price,
        "ebay_item_id": ebay.item_id,
    }


def account_from_row(row: orm.Account) -> Account:
    return Account(
        id=row.id,
        name=row.name,
        email=row.email,
        description=row.description or "",
        status=row.status,
        metadata=row.metadata_ or {},
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def category_from_row(row: orm.Category) -> Category:
    columns = [TemplateColumn.model_validate(c) for c in (row.template_columns or [])]
    return Category(
        id=row.id,
        name=row.name,
        account_id=row.account_id,
        description=row.description or "",
        status=row.status,
        template_columns=sorted(columns, key=lambda c: c.order),
        metadata=row.metadata_ or {},
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
