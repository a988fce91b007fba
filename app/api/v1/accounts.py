"""
Account API endpoints.

Provides:
- GET /api/v1/accounts: List accounts
- POST /api/v1/accounts: Create an account (name and email unique)
- GET /api/v1/accounts/{id}: Get an account
- PUT /api/v1/accounts/{id}: Update an account
- DELETE /api/v1/accounts/{id}: Delete an account and unlink its products
- GET /api/v1/accounts/{id}/products: Products linked to an account
- GET /api/v1/accounts/{id}/categories: Active categories of an account
"""

import uuid

from fastapi import APIRouter, Depends
from pydantic import Field

from app.api.dependencies import get_catalog_service
from app.core.models import Account, CamelModel, Category, Product, RecordStatus
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/accounts", tags=["Accounts"])


# ─── Request Schemas ───────────────────────────────────────


class AccountCreate(CamelModel):
    name: str = Field(default="", max_length=200)
    email: str = Field(default="", max_length=320)
    description: str = ""
    status: RecordStatus = RecordStatus.ACTIVE
    metadata: dict[str, str] = Field(default_factory=dict)


class AccountUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)
    description: str | None = None
    status: RecordStatus | None = None
    metadata: dict[str, str] | None = None


# ─── Endpoints ─────────────────────────────────────────────


@router.get("", summary="List accounts")
async def list_accounts(catalog: CatalogService = Depends(get_catalog_service)) -> list[Account]:
    return await catalog.list_accounts()


@router.post("", status_code=201, summary="Create an account")
async def create_account(
    request: AccountCreate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Account:
    return await catalog.create_account(
        name=request.name,
        email=request.email,
        description=request.description,
        status=request.status,
        metadata=request.metadata,
    )


@router.get("/{account_id}", summary="Get an account")
async def get_account(
    account_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Account:
    return await catalog.get_account(account_id)


@router.put("/{account_id}", summary="Update an account")
async def update_account(
    account_id: uuid.UUID,
    request: AccountUpdate,
    catalog: CatalogService = Depends(get_catalog_service),
) -> Account:
    changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
    return await catalog.update_account(account_id, changes)


@router.delete("/{account_id}", summary="Delete an account")
async def delete_account(
    account_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> dict:
    await catalog.delete_account(account_id)
    return {"message": "Account deleted successfully"}


@router.get("/{account_id}/products", summary="Products linked to an account")
async def account_products(
    account_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Product]:
    return await catalog.account_products(account_id)


@router.get("/{account_id}/categories", summary="Categories of an account")
async def account_categories(
    account_id: uuid.UUID,
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[Category]:
    return await catalog.account_categories(account_id)
