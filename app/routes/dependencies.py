"""Shared FastAPI dependencies for route modules."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.services.news_store import SqlNewsStore
from app.services.preference_service import SqlPreferenceStore
from app.utils.db_async import get_session


async def get_news_store(db: AsyncSession = Depends(get_session)) -> SqlNewsStore:
    return SqlNewsStore(db)


async def get_preference_store(
    db: AsyncSession = Depends(get_session),
) -> SqlPreferenceStore:
    return SqlPreferenceStore(db)
