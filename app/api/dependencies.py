"""
FastAPI dependencies shared by the v1 routers.

The lookup service is built once at startup and kept on ``app.state``;
the catalog service is built per request around the request's session.
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.services.catalog_service import CatalogService
from app.services.lookup_service import LookupService


def get_lookup_service(request: Request) -> LookupService:
    return request.app.state.lookup_service


async def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)
