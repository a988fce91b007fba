"""
Account-specific database repository.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models import Account
from app.db.repositories.base_repo import BaseRepository


class AccountRepository(BaseRepository[Account]):
    """Repository for Account CRUD and uniqueness queries."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Account)

    async def find_by_name(self, name: str) -> Account | None:
        stmt = select(Account).where(Account.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> Account | None:
        """Find an account by email address (case-insensitive)."""
        stmt = select(Account).where(Account.email == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def name_or_email_taken(
        self,
        name: str | None = None,
        email: str | None = None,
        exclude_id: uuid.UUID | None = None,
    ) -> str | None:
        """
        Check uniqueness of a name/email pair.

        Returns the name of the clashing field ("name" or "email"), or None.
        ``exclude_id`` skips the account being updated.
        """
        if name is not None:
            existing = await self.find_by_name(name)
            if existing is not None and existing.id != exclude_id:
                return "name"
        if email is not None:
            existing = await self.find_by_email(email)
            if existing is not None and existing.id != exclude_id:
                return "email"
        return None
