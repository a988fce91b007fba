"""
Category-specific database repository.
"""

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Category
from app.db.repositories.base_repo import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category CRUD and per-account queries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Category)

    async def find_by_account(self, account_id: uuid.UUID) -> list[Category]:
        stmt = (
            select(Category)
            .where(Category.account_id == account_id)
            .order_by(Category.created_at)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_name(self, account_id: uuid.UUID, name: str) -> Category | None:
        """Category names are unique per account."""
        stmt = select(Category).where(Category.account_id == account_id, Category.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_account(self, account_id: uuid.UUID) -> int:
        stmt = delete(Category).where(Category.account_id == account_id)
        result = await self.session.execute(stmt)
        return result.rowcount
