"""
Category API endpoints.

Provides:
- POST /api/v1/categories: Create a category under an account
- GET /api/v1/categories/{id}: Get a category
- PUT /api/v1/categories/{id}: Update a category
- DELETE /api/v1/categories/{id}: Delete a category and unlink its products
- GET /api/v1/categories/{id}/products: Products in a category
- POST /api/v1/categories/{id}/template/column: Add a template column
- PUT /api/v1/categories/{id}/template/column/{column_id}: Rename/retype a column
- DELETE /api/v1/categories/{id}/template/column/{column_id}: Remove a column
- PUT /api/v1/categories/{id}/template/reorder: Reorder template columns
"""

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import Field

from app.api.dependencies import get_catalog_service
from app.core.models import CamelModel, Category, ColumnType, Product, RecordStatus
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/categories", tags=["Categories"])


# ─── Request Schemas ───────────────────────────────────────


class CategoryCreate(CamelModel):
    name: str = Field(default="", max_length=200)
    account_id: uuid.UUID
    description: str = ""
    metadata: dict[str, str] = Field(default_factory=dict)


class CategoryUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = None
    status: RecordStatus | None = None
    metadata: dict[str, str] | None = None


class ColumnCreate(CamelModel):
    column_name: str = ""
    column_type: ColumnType = ColumnType.TEXT


class ColumnUpdate(CamelModel):
    column_name: str | None = None
    column_type: ColumnType | None = None


class ColumnReorder(CamelModel):
    column_order: Any = None


# ─── Categories ────────────────────────────────────────────


@router.post("", status_code=201, summary="Create a category")
async def create_category(
    request: CategoryCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    return await catalog.create_category(
        name=request.name,
        account_id=request.account_id,
        description=request.description,
        metadata=request.metadata,
    )


@router.get("/{category_id}", summary="Get a category")
async def get_category(
    category_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    return await catalog.get_category(category_id)


@router.put("/{category_id}", summary="Update a category")
async def update_category(
    category_id: uuid.UUID,
    request: CategoryUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    return await catalog.update_category(category_id, changes)


@router.delete("/{category_id}", summary="Delete a category")
async def delete_category(
    category_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> dict:
    await catalog.delete_category(category_id)
    return {"message": "Category deleted successfully"}


@router.get("/{category_id}/products", summary="Products in a category")
async def category_products(
    category_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Product]:
    return await catalog.category_products(category_id)


# ─── Template Columns ──────────────────────────────────────


@router.post("/{category_id}/template/column", summary="Add a template column")
async def add_column(
    category_id: uuid.UUID,
    request: ColumnCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    return await catalog.add_column(category_id, request.column_name, request.column_type)


@router.put("/{category_id}/template/reorder", summary="Reorder template columns")
async def reorder_columns(
    category_id: uuid.UUID,
    request: ColumnReorder,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    return await catalog.reorder_columns(category_id, request.column_order)


@router.put("/{category_id}/template/column/{column_id}", summary="Update a template column")
async def update_column(
    category_id: uuid.UUID,
    column_id: str,
    request: ColumnUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    return await catalog.update_column(
        category_id,
        column_id,
        column_name=request.column_name,
        column_type=request.column_type,
    )


@router.delete("/{category_id}/template/column/{column_id}", summary="Delete a template column")
async def delete_column(
    category_id: uuid.UUID,
    column_id: str,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    return await catalog.delete_column(category_id, column_id)
