"""
Database repository layer for ASIN Lookup.

All repositories inherit from BaseRepository and provide CRUD
operations plus entity-specific query methods. ``ProductStore`` is the
session-per-call adapter the lookup pipeline writes through.

Usage:
    from app.db.repositories import AccountRepository, ProductRepository

    product_repo = ProductRepository(session)
    products = await product_repo.find(account_id=account.id)
"""

from app.db.repositories.account_repo import AccountRepository
from app.db.repositories.base_repo import BaseRepository
from app.db.repositories.category_repo import CategoryRepository
from app.db.repositories.product_repo import ProductRepository, ProductStore

__all__ = [
    "AccountRepository",
    "BaseRepository",
    "CategoryRepository",
    "ProductRepository",
    "ProductStore",
]
