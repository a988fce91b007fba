"""
Tests for app.services.catalog_service: accounts, categories, template
columns, and operator-owned product associations.

Runs against a throwaway SQLite file with one session per test, the way a
request's unit of work does.
"""

import uuid
from datetime import UTC, datetime

import pytest

from app.core.exceptions import (
    AssignmentConflictError,
    DuplicateRecordError,
    RecordNotFoundError,
    ValidationError,
)
from app.core.models import ColumnType, RecordStatus, Spreadsheet
from app.db.database import Database
from app.db.repositories import ProductStore
from app.services.catalog_service import CatalogService, new_column_id

FETCHED_AT = datetime(2026, 10, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
async def database(tmp_path):
    db = Database.from_url(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    await db.init(create_tables=True)
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
def service(session) -> CatalogService:
    return CatalogService(session)


@pytest.fixture
async def cached_product(database, provider_fields):
    """A product written by the lookup pipeline before the operator touches it."""
    return await ProductStore(database).upsert(
        "B09C5RG6KV",
        {**provider_fields, "ebay_title": "Listing title", "last_updated": FETCHED_AT},
    )


# ─── Accounts ────────────────────────────────────────────────


class TestAccounts:

    async def test_create_normalizes_and_lists_by_name(self, service):
        await service.create_account("  Zeta Store ", "ZETA@example.com")
        await service.create_account("alpha store", "alpha@example.com", description="first")

        accounts = await service.list_accounts()

        assert [a.name for a in accounts] == ["alpha store", "Zeta Store"]
        assert accounts[1].email == "zeta@example.com"
        assert accounts[0].status == RecordStatus.ACTIVE

    async def test_create_requires_name_and_email(self, service):
        with pytest.raises(ValidationError):
            await service.create_account("", "a@example.com")
        with pytest.raises(ValidationError):
            await service.create_account("Main", "   ")

    async def test_duplicate_name_or_email_rejected(self, service):
        await service.create_account("Main", "main@example.com")

        with pytest.raises(DuplicateRecordError) as exc_info:
            await service.create_account("Main", "other@example.com")
        assert exc_info.value.details == {"field": "name"}

        with pytest.raises(DuplicateRecordError):
            await service.create_account("Other", "MAIN@example.com")

    async def test_update_account(self, service):
        account = await service.create_account("Main", "main@example.com")
        await service.create_account("Other", "other@example.com")

        updated = await service.update_account(
            account.id, {"description": "Primary", "metadata": {"region": "US"}, "status": "inactive"}
        )
        assert updated.description == "Primary"
        assert updated.metadata == {"region": "US"}
        assert updated.status == RecordStatus.INACTIVE

        # Keeping its own name is not a clash
        assert (await service.update_account(account.id, {"name": "Main"})).name == "Main"
        with pytest.raises(DuplicateRecordError):
            await service.update_account(account.id, {"email": "other@example.com"})
        with pytest.raises(ValidationError):
            await service.update_account(account.id, {"name": "  "})

    async def test_missing_account(self, service):
        with pytest.raises(RecordNotFoundError, match="Account not found"):
            await service.get_account(uuid.uuid4())

    async def test_delete_removes_categories_and_unlinks_products(self, service, cached_product):
        account = await service.create_account("Main", "main@example.com")
        category = await service.create_category("Chargers", account.id)
        await service.assign_product("B09C5RG6KV", account.id, category.id)

        await service.delete_account(account.id)

        with pytest.raises(RecordNotFoundError):
            await service.get_category(category.id)
        product = (await service.list_products())[0]
        assert product.account_id is None
        assert product.category_id is None

    async def test_account_categories_only_active_sorted(self, service):
        account = await service.create_account("Main", "main@example.com")
        await service.create_category("Toys", account.id)
        retired = await service.create_category("Books", account.id)
        await service.create_category("apparel", account.id)
        await service.update_category(retired.id, {"status": "inactive"})

        names = [c.name for c in await service.account_categories(account.id)]

        assert names == ["apparel", "Toys"]


# ─── Categories ──────────────────────────────────────────────


class TestCategories:

    async def test_create_requires_existing_account(self, service):
        with pytest.raises(RecordNotFoundError):
            await service.create_category("Chargers", uuid.uuid4())

    async def test_names_unique_per_account(self, service):
        main = await service.create_account("Main", "main@example.com")
        other = await service.create_account("Other", "other@example.com")
        await service.create_category("Chargers", main.id)

        with pytest.raises(DuplicateRecordError):
            await service.create_category("Chargers", main.id)
        assert (await service.create_category("Chargers", other.id)).account_id == other.id

    async def test_rename_clash(self, service):
        account = await service.create_account("Main", "main@example.com")
        await service.create_category("Chargers", account.id)
        cables = await service.create_category("Cables", account.id)

        with pytest.raises(DuplicateRecordError):
            await service.update_category(cables.id, {"name": "Chargers"})
        assert (await service.update_category(cables.id, {"name": "Cables"})).name == "Cables"

    async def test_delete_unlinks_products(self, service, cached_product):
        account = await service.create_account("Main", "main@example.com")
        category = await service.create_category("Chargers", account.id)
        await service.assign_product("B09C5RG6KV", account.id, category.id)

        await service.delete_category(category.id)

        product = (await service.account_products(account.id))[0]
        assert product.account_id == account.id
        assert product.category_id is None


# ─── Template Columns ────────────────────────────────────────


class TestTemplateColumns:

    @pytest.fixture
    async def category(self, service):
        account = await service.create_account("Main", "main@example.com")
        return await service.create_category("Chargers", account.id)

    def test_column_ids_are_unique(self):
        assert new_column_id().startswith("col_")
        assert new_column_id() != new_column_id()

    async def test_add_columns_in_order(self, service, category):
        await service.add_column(category.id, "Supplier")
        updated = await service.add_column(category.id, "Cost", ColumnType.NUMBER)

        assert [(c.column_name, c.order) for c in updated.template_columns] == [
            ("Supplier", 0),
            ("Cost", 1),
        ]
        assert updated.template_columns[1].column_type == ColumnType.NUMBER

    async def test_add_column_requires_name(self, service, category):
        with pytest.raises(ValidationError):
            await service.add_column(category.id, " ")

    async def test_update_column(self, service, category):
        added = await service.add_column(category.id, "Supplier")
        column_id = added.template_columns[0].column_id

        updated = await service.update_column(category.id, column_id, column_type=ColumnType.URL)

        assert updated.template_columns[0].column_name == "Supplier"
        assert updated.template_columns[0].column_type == ColumnType.URL
        with pytest.raises(RecordNotFoundError, match="Column not found"):
            await service.update_column(category.id, "col_missing", column_name="x")

    async def test_delete_column_reindexes_and_clears_values(self, service, cached_product, category):
        await service.add_column(category.id, "A")
        await service.add_column(category.id, "B")
        columns = (await service.add_column(category.id, "C")).template_columns
        await service.assign_product("B09C5RG6KV", category.account_id, category.id)
        await service.set_template_value("B09C5RG6KV", columns[0].column_id, "gone")
        await service.set_template_value("B09C5RG6KV", columns[2].column_id, "kept")

        updated = await service.delete_column(category.id, columns[0].column_id)

        assert [(c.column_name, c.order) for c in updated.template_columns] == [("B", 0), ("C", 1)]
        product = (await service.category_products(category.id))[0]
        assert product.template_values == {columns[2].column_id: "kept"}

    async def test_reorder(self, service, category):
        for name in ("A", "B", "C", "D"):
            columns = (await service.add_column(category.id, name)).template_columns
        ids = {c.column_name: c.column_id for c in columns}

        updated = await service.reorder_columns(category.id, [ids["C"], "col_unknown", ids["A"]])

        assert [c.column_name for c in updated.template_columns] == ["C", "A", "B", "D"]
        assert [c.order for c in updated.template_columns] == [0, 1, 2, 3]

    async def test_reorder_requires_list(self, service, category):
        with pytest.raises(ValidationError, match="columnOrder must be an array"):
            await service.reorder_columns(category.id, "col_a,col_b")


# ─── Products ────────────────────────────────────────────────


class TestProductEdits:

    async def test_operator_edit_keeps_freshness(self, service, cached_product):
        product = await service.update_product(
            "b09c5rg6kv",
            {
                "title": "Edited title",
                "brand": None,
                "rating": None,
                "ebay": {"price": "31.50", "item_id": "1122", "title": None},
                "last_updated": datetime(2020, 1, 1, tzinfo=UTC),
                "asin": "B000000000",
            },
        )

        assert product.asin == "B09C5RG6KV"
        assert product.title == "Edited title"
        assert product.brand == "Anker"
        assert product.rating is None
        assert product.ebay.price == "31.50"
        assert product.ebay.item_id == "1122"
        assert product.ebay.title == "Listing title"
        assert product.last_updated == FETCHED_AT

    async def test_missing_product(self, service):
        with pytest.raises(RecordNotFoundError, match="Product not found"):
            await service.update_product("B000000000", {"title": "x"})

    async def test_assign_and_reassign(self, service, cached_product):
        main = await service.create_account("Main", "main@example.com")
        other = await service.create_account("Other", "other@example.com")
        chargers = await service.create_category("Chargers", main.id)

        product = await service.assign_product("B09C5RG6KV", main.id)
        assert product.account_id == main.id
        assert product.category_id is None

        product = await service.assign_product("B09C5RG6KV", main.id, chargers.id)
        assert product.category_id == chargers.id

        with pytest.raises(AssignmentConflictError) as exc_info:
            await service.assign_product("B09C5RG6KV", other.id)
        assert exc_info.value.current_account_id == str(main.id)

    async def test_assign_unknown_targets(self, service, cached_product):
        with pytest.raises(RecordNotFoundError, match="Account not found"):
            await service.assign_product("B09C5RG6KV", uuid.uuid4())

        account = await service.create_account("Main", "main@example.com")
        with pytest.raises(RecordNotFoundError, match="Category not found"):
            await service.assign_product("B09C5RG6KV", account.id, uuid.uuid4())

    async def test_template_values_are_opaque(self, service, cached_product):
        await service.set_template_value("B09C5RG6KV", "col_a", 12.5)
        product = await service.set_template_value("B09C5RG6KV", "col_b", True)

        assert product.template_values == {"col_a": 12.5, "col_b": True}
        assert product.last_updated == FETCHED_AT

    async def test_spreadsheet_round_trip(self, service, cached_product):
        assert (await service.get_spreadsheet("B09C5RG6KV")).rows == []

        sheet = Spreadsheet.model_validate(
            {
                "columns": [{"id": "c1", "name": "Notes", "type": "text", "width": 120}],
                "rows": [{"id": "r1", "cells": {"c1": "restock in May"}}],
            }
        )
        await service.save_spreadsheet("B09C5RG6KV", sheet)

        assert await service.get_spreadsheet("B09C5RG6KV") == sheet

    async def test_list_products_filters(self, service, cached_product, database):
        await ProductStore(database).upsert("B000000001", {"title": "Other"})
        account = await service.create_account("Main", "main@example.com")
        await service.assign_product("B09C5RG6KV", account.id)

        assert len(await service.list_products()) == 2
        assert [p.asin for p in await service.list_products(account_id=account.id)] == ["B09C5RG6KV"]
