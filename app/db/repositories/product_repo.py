"""
Product-specific database repository and the lookup pipeline's store adapter.

``ProductRepository`` works inside a caller-owned session (API handlers).
``ProductStore`` opens its own short session per call so concurrent batch
lookups never share one, and turns driver errors into PersistenceError.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import case, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import PersistenceError
from app.core.interfaces import IProductStore
from app.core.models import Product as ProductModel
from app.db.database import Database
from app.db.mappers import product_from_row
from app.db.models import Product, utc_now
from app.db.repositories.base_repo import BaseRepository

logger = logging.getLogger(__name__)

# Columns the upsert may write. Timestamps and the key are managed here.
WRITABLE_COLUMNS = frozenset(
    c.key for c in Product.__table__.columns if c.key not in ("asin", "created_at", "updated_at")
)

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ProductRepository(BaseRepository[Product]):
    """Repository for Product CRUD and queries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Product)

    async def get_by_asin(self, asin: str) -> Product | None:
        return await self.session.get(Product, asin)

    async def upsert(self, asin: str, fields: dict[str, Any]) -> Product:
        """
        Insert or update the row for ``asin`` in one statement.

        Only keys present in ``fields`` are written on conflict; on insert,
        absent columns take their defaults. ``last_updated`` never moves
        backwards: on conflict it becomes the later of the stored and
        incoming values.

        Raises:
            ValueError: ``fields`` names a column that doesn't exist.
        """
        values = {k: v for k, v in fields.items() if k != "asin"}
        unknown = set(values) - WRITABLE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown product fields: {', '.join(sorted(unknown))}")

        dialect = self.session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise PersistenceError(f"Upsert is not supported on {dialect}")

        stmt = insert(Product).values(asin=asin, **values)
        set_: dict[str, Any] = {key: stmt.excluded[key] for key in values}
        if "last_updated" in values:
            set_["last_updated"] = case(
                (Product.last_updated.is_(None), stmt.excluded.last_updated),
                (Product.last_updated > stmt.excluded.last_updated, Product.last_updated),
                else_=stmt.excluded.last_updated,
            )
        # onupdate defaults don't fire for ON CONFLICT updates
        set_["updated_at"] = utc_now()

        await self.session.execute(stmt.on_conflict_do_update(index_elements=["asin"], set_=set_))
        return await self.session.get(Product, asin, populate_existing=True)

    async def find(
        self,
        account_id: uuid.UUID | None = None,
        category_id: uuid.UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Product]:
        """List products, newest first, optionally filtered by account/category."""
        stmt = select(Product)
        if account_id is not None:
            stmt = stmt.where(Product.account_id == account_id)
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        stmt = stmt.order_by(Product.updated_at.desc()).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_account(self, account_id: uuid.UUID) -> list[Product]:
        return await self.find(account_id=account_id, limit=1000)

    async def find_by_category(self, category_id: uuid.UUID) -> list[Product]:
        return await self.find(category_id=category_id, limit=1000)

    async def unlink_account(self, account_id: uuid.UUID) -> int:
        """Detach every product from an account (and its categories)."""
        stmt = (
            update(Product)
            .where(Product.account_id == account_id)
            .values(account_id=None, category_id=None, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def unlink_category(self, category_id: uuid.UUID) -> int:
        stmt = (
            update(Product)
            .where(Product.category_id == category_id)
            .values(category_id=None, updated_at=utc_now())
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    async def drop_template_value(self, category_id: uuid.UUID, column_id: str) -> int:
        """Remove one template column's value from every product in a category."""
        touched = 0
        for product in await self.find_by_category(category_id):
            if column_id in (product.template_values or {}):
                values = dict(product.template_values)
                values.pop(column_id)
                product.template_values = values
                touched += 1
        await self.session.flush()
        return touched


class ProductStore(IProductStore):
    """
    Store adapter used by the lookup pipeline.

    Each call runs in its own session and commits before returning.
    """

    def __init__(self, database: Database):
        self._database = database

    async def get_by_asin(self, asin: str) -> ProductModel | None:
        try:
            async with self._database.session() as session:
                row = await ProductRepository(session).get_by_asin(asin)
                return product_from_row(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to read product {asin}: {e}")
            raise PersistenceError(
                f"Product store unavailable while reading {asin}",
                details={"asin": asin, "error": str(e)},
            ) from e

    async def upsert(self, asin: str, fields: dict[str, Any]) -> ProductModel:
        try:
            async with self._database.session() as session:
                row = await ProductRepository(session).upsert(asin, fields)
                return product_from_row(row)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save product {asin}: {e}")
            raise PersistenceError(
                f"Product store rejected the write for {asin}",
                details={"asin": asin, "error": str(e)},
            ) from e
