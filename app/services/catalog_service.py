"""
Catalog management service: accounts, categories, template columns, and
operator-owned product associations.

Works inside one caller-owned session (a request's unit of work). None of
these operations touch provider data, listing content, or ``last_updated``,
so they never change a product's cache freshness.

Usage:
    service = CatalogService(session)
    account = await service.create_account("Main Store", "ops@example.com")
    category = await service.create_category("Kitchen", account.id)
    product = await service.assign_product("B09C5RG6KV", account.id, category.id)
"""

import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AssignmentConflictError,
    DuplicateRecordError,
    RecordNotFoundError,
    ValidationError,
)
from app.core.models import (
    Account,
    Category,
    ColumnType,
    Product,
    RecordStatus,
    Spreadsheet,
    TemplateColumn,
    TemplateValue,
    normalize_asin,
)
from app.db import models as orm
from app.db.mappers import account_from_row, category_from_row, ebay_columns, product_from_row
from app.db.repositories import AccountRepository, CategoryRepository, ProductRepository

logger = logging.getLogger(__name__)

# Product fields an operator may edit directly
EDITABLE_PRODUCT_FIELDS = frozenset({
    "title",
    "brand",
    "price",
    "description",
    "images",
    "rating",
    "review_count",
})


def new_column_id() -> str:
    return f"col_{uuid.uuid4().hex[:12]}"


class CatalogService:
    """Account/category CRUD and product association rules."""

    def __init__(self, session: AsyncSession):
        self._accounts = AccountRepository(session)
        self._categories = CategoryRepository(session)
        self._products = ProductRepository(session)

    # ─── Accounts ────────────────────────────────────────────

    async def list_accounts(self) -> list[Account]:
        rows = await self._accounts.get_all(limit=1000)
        return sorted((account_from_row(r) for r in rows), key=lambda a: a.name.lower())

    async def get_account(self, account_id: uuid.UUID) -> Account:
        return account_from_row(await self._require_account(account_id))

    async def create_account(
        self,
        name: str,
        email: str,
        description: str = "",
        status: RecordStatus = RecordStatus.ACTIVE,
        metadata: dict[str, str] | None = None,
    ) -> Account:
        """
        Create an account.

        Raises:
            ValidationError: Name or email missing.
            DuplicateRecordError: Name or email already used.
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email:
            raise ValidationError("Name and email are required")

        clash = await self._accounts.name_or_email_taken(name=name, email=email)
        if clash:
            raise DuplicateRecordError(
                "Account with this name or email already exists",
                details={"field": clash},
            )

        row = await self._accounts.create(
            name=name,
            email=email,
            description=description or "",
            status=str(status),
            metadata_=metadata or {},
        )
        logger.info(f"Created account {name} (id: {row.id})")
        return account_from_row(row)

    async def update_account(self, account_id: uuid.UUID, changes: dict[str, Any]) -> Account:
        row = await self._require_account(account_id)

        if "name" in changes and changes["name"] is not None:
            changes["name"] = changes["name"].strip()
        if "email" in changes and changes["email"] is not None:
            changes["email"] = changes["email"].strip().lower()
        if not changes.get("name", row.name) or not changes.get("email", row.email):
            raise ValidationError("Name and email cannot be empty")

        clash = await self._accounts.name_or_email_taken(
            name=changes.get("name"),
            email=changes.get("email"),
            exclude_id=row.id,
        )
        if clash:
            raise DuplicateRecordError(
                "Account with this name or email already exists",
                details={"field": clash},
            )

        if "metadata" in changes:
            changes["metadata_"] = changes.pop("metadata") or {}
        if "status" in changes:
            changes["status"] = str(changes["status"])
        row = await self._accounts.update(row.id, **changes)
        logger.info(f"Updated account {row.name}")
        return account_from_row(row)

    async def delete_account(self, account_id: uuid.UUID) -> None:
        """Delete an account with its categories; its products are unlinked, not deleted."""
        row = await self._require_account(account_id)
        unlinked = await self._products.unlink_account(row.id)
        await self._categories.delete_by_account(row.id)
        await self._accounts.delete(row.id)
        logger.info(f"Deleted account {row.name} ({unlinked} products unlinked)")

    async def account_products(self, account_id: uuid.UUID) -> list[Product]:
        rows = await self._products.find_by_account(account_id)
        return [product_from_row(r) for r in rows]

    async def account_categories(self, account_id: uuid.UUID) -> list[Category]:
        """Active categories of an account, by name."""
        rows = await self._categories.find_by_account(account_id)
        categories = [category_from_row(r) for r in rows if r.status == RecordStatus.ACTIVE]
        return sorted(categories, key=lambda c: c.name.lower())

    # ─── Categories ──────────────────────────────────────────

    async def get_category(self, category_id: uuid.UUID) -> Category:
        return category_from_row(await self._require_category(category_id))

    async def create_category(
        self,
        name: str,
        account_id: uuid.UUID,
        description: str = "",
        metadata: dict[str, str] | None = None,
    ) -> Category:
        """
        Create a category under an account.

        Raises:
            RecordNotFoundError: The account doesn't exist.
            DuplicateRecordError: The account already has a category with this name.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name and accountId are required")
        await self._require_account(account_id)

        if await self._categories.find_by_name(account_id, name) is not None:
            raise DuplicateRecordError("Category with this name already exists for this account")

        row = await self._categories.create(
            name=name,
            account_id=account_id,
            description=description or "",
            metadata_=metadata or {},
        )
        logger.info(f"Created category {name} for account {account_id}")
        return category_from_row(row)

    async def update_category(self, category_id: uuid.UUID, changes: dict[str, Any]) -> Category:
        row = await self._require_category(category_id)

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError("Category name cannot be empty")
            existing = await self._categories.find_by_name(row.account_id, name)
            if existing is not None and existing.id != row.id:
                raise DuplicateRecordError("Category with this name already exists for this account")
            changes["name"] = name
        if "metadata" in changes:
            changes["metadata_"] = changes.pop("metadata") or {}
        if "status" in changes:
            changes["status"] = str(changes["status"])

        row = await self._categories.update(row.id, **changes)
        logger.info(f"Updated category {row.name}")
        return category_from_row(row)

    async def delete_category(self, category_id: uuid.UUID) -> None:
        row = await self._require_category(category_id)
        unlinked = await self._products.unlink_category(row.id)
        await self._categories.delete(row.id)
        logger.info(f"Deleted category {row.name} ({unlinked} products unlinked)")

    async def category_products(self, category_id: uuid.UUID) -> list[Product]:
        rows = await self._products.find_by_category(category_id)
        return [product_from_row(r) for r in rows]

    # ─── Template Columns ────────────────────────────────────

    async def add_column(
        self,
        category_id: uuid.UUID,
        column_name: str,
        column_type: ColumnType = ColumnType.TEXT,
    ) -> Category:
        column_name = (column_name or "").strip()
        if not column_name:
            raise ValidationError("Column name is required")
        row = await self._require_category(category_id)

        columns = self._columns(row)
        columns.append(
            TemplateColumn(
                column_id=new_column_id(),
                column_name=column_name,
                column_type=column_type,
                order=len(columns),
            )
        )
        return await self._save_columns(row, columns)

    async def update_column(
        self,
        category_id: uuid.UUID,
        column_id: str,
        column_name: str | None = None,
        column_type: ColumnType | None = None,
    ) -> Category:
        row = await self._require_category(category_id)
        columns = self._columns(row)
        column = self._find_column(columns, column_id)
        if column_name:
            column.column_name = column_name.strip()
        if column_type:
            column.column_type = column_type
        return await self._save_columns(row, columns)

    async def delete_column(self, category_id: uuid.UUID, column_id: str) -> Category:
        """Remove a column and drop its value from every product in the category."""
        row = await self._require_category(category_id)
        columns = self._columns(row)
        self._find_column(columns, column_id)

        remaining = [c for c in columns if c.column_id != column_id]
        for index, column in enumerate(remaining):
            column.order = index
        category = await self._save_columns(row, remaining)

        cleared = await self._products.drop_template_value(row.id, column_id)
        logger.info(f"Deleted column {column_id} from category {row.id} ({cleared} values cleared)")
        return category

    async def reorder_columns(self, category_id: uuid.UUID, column_order: list[str]) -> Category:
        """
        Reorder template columns.

        Listed column IDs come first in the given order; unknown IDs are
        ignored and unlisted columns keep their relative order after them.
        """
        if not isinstance(column_order, list):
            raise ValidationError("columnOrder must be an array")
        row = await self._require_category(category_id)
        columns = self._columns(row)

        rank = {column_id: i for i, column_id in enumerate(column_order)}
        ordered = sorted(columns, key=lambda c: (rank.get(c.column_id, len(rank)), c.order))
        for index, column in enumerate(ordered):
            column.order = index
        return await self._save_columns(row, ordered)

    # ─── Products ────────────────────────────────────────────

    async def list_products(
        self,
        account_id: uuid.UUID | None = None,
        category_id: uuid.UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Product]:
        rows = await self._products.find(account_id, category_id, limit=limit, offset=offset)
        return [product_from_row(r) for r in rows]

    async def update_product(self, asin: str, changes: dict[str, Any]) -> Product:
        """
        Apply an operator edit to product fields and the eBay sub-record.

        ``changes`` may carry an ``ebay`` dict (title, description, image,
        image_links, price, item_id); everything else outside the editable
        product fields is ignored.
        """
        row = await self._require_product(asin)

        for key, value in changes.items():
            # rating is the only nullable editable column
            if key in EDITABLE_PRODUCT_FIELDS and (value is not None or key == "rating"):
                setattr(row, key, value)

        if changes.get("ebay"):
            ebay_changes = {k: v for k, v in changes["ebay"].items() if v is not None}
            ebay = product_from_row(row).ebay.model_copy(update=ebay_changes)
            for column, value in ebay_columns(ebay).items():
                setattr(row, column, value)

        await self._products.session.flush()
        logger.info(f"Operator updated product {row.asin}")
        return product_from_row(row)

    async def assign_product(
        self,
        asin: str,
        account_id: uuid.UUID | None,
        category_id: uuid.UUID | None = None,
    ) -> Product:
        """
        Link a product to an account and optionally a category.

        Raises:
            RecordNotFoundError: Product, account, or category doesn't exist.
            AssignmentConflictError: Product is already linked to another account.
        """
        row = await self._require_product(asin)

        if row.account_id and account_id and row.account_id != account_id:
            raise AssignmentConflictError(asin=row.asin, current_account_id=str(row.account_id))

        if account_id:
            await self._require_account(account_id)
        if category_id:
            await self._require_category(category_id)

        row.account_id = account_id
        if category_id:
            row.category_id = category_id
        await self._products.session.flush()

        logger.info(f"Assigned {row.asin} to account {account_id}, category {category_id}")
        return product_from_row(row)

    async def set_template_value(self, asin: str, column_id: str, value: TemplateValue) -> Product:
        row = await self._require_product(asin)
        # Reassign so the JSON column is marked dirty
        row.template_values = {**(row.template_values or {}), column_id: value}
        await self._products.session.flush()
        return product_from_row(row)

    async def get_spreadsheet(self, asin: str) -> Spreadsheet:
        return product_from_row(await self._require_product(asin)).spreadsheet

    async def save_spreadsheet(self, asin: str, spreadsheet: Spreadsheet) -> Spreadsheet:
        row = await self._require_product(asin)
        row.spreadsheet = spreadsheet.model_dump(mode="json")
        await self._products.session.flush()
        logger.info(f"Saved spreadsheet for {row.asin}")
        return spreadsheet

    # ─── Helpers ─────────────────────────────────────────────

    async def _require_account(self, account_id: uuid.UUID) -> orm.Account:
        row = await self._accounts.get_by_id(account_id)
        if row is None:
            raise RecordNotFoundError("Account not found", details={"account_id": str(account_id)})
        return row

    async def _require_category(self, category_id: uuid.UUID) -> orm.Category:
        row = await self._categories.get_by_id(category_id)
        if row is None:
            raise RecordNotFoundError("Category not found", details={"category_id": str(category_id)})
        return row

    async def _require_product(self, asin: str) -> orm.Product:
        row = await self._products.get_by_asin(normalize_asin(asin))
        if row is None:
            raise RecordNotFoundError("Product not found", details={"asin": asin})
        return row

    @staticmethod
    def _columns(row: orm.Category) -> list[TemplateColumn]:
        columns = [TemplateColumn.model_validate(c) for c in (row.template_columns or [])]
        return sorted(columns, key=lambda c: c.order)

    @staticmethod
    def _find_column(columns: list[TemplateColumn], column_id: str) -> TemplateColumn:
        for column in columns:
            if column.column_id == column_id:
                return column
        raise RecordNotFoundError("Column not found", details={"column_id": column_id})

    async def _save_columns(self, row: orm.Category, columns: list[TemplateColumn]) -> Category:
        row.template_columns = [c.model_dump(mode="json") for c in columns]
        await self._categories.session.flush()
        return category_from_row(row)
