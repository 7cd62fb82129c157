"""User favorites on stored news items."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.users import FavoriteRead
from app.schemas.news import NewsItem
from app.schemas.platforms import Platform
from app.schemas.user_favorites import UserFavorite
from app.services.news_service import to_news_item_read

logger = logging.getLogger(__name__)


class FavoriteError(Exception):
    pass


class NewsNotFoundError(FavoriteError):
    pass


class DuplicateFavoriteError(FavoriteError):
    pass


async def add_favorite(db: AsyncSession, user_id: str, news_id: int) -> UserFavorite:
    """Bookmark a news item for a user.

    Raises:
        NewsNotFoundError: news item does not exist
        DuplicateFavoriteError: already bookmarked
    """
    if await db.get(NewsItem, news_id) is None:
        raise NewsNotFoundError(f"News item {news_id} not found")

    existing = await db.execute(
        select(UserFavorite.id).where(  # type: ignore[call-overload]
            UserFavorite.user_id == user_id,
            UserFavorite.news_id == news_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateFavoriteError(f"News item {news_id} already in favorites")

    favorite = UserFavorite(user_id=user_id, news_id=news_id)
    db.add(favorite)
    try:
        await db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent add
        await db.rollback()
        raise DuplicateFavoriteError(f"News item {news_id} already in favorites") from exc
    await db.refresh(favorite)
    return favorite


async def remove_favorite(db: AsyncSession, user_id: str, news_id: int) -> bool:
    """Remove a bookmark. Returns False when there was none."""
    result = await db.execute(
        delete(UserFavorite).where(
            UserFavorite.user_id == user_id,  # type: ignore[arg-type]
            UserFavorite.news_id == news_id,  # type: ignore[arg-type]
        )
    )
    await db.commit()
    return (result.rowcount or 0) > 0


async def is_favorited(db: AsyncSession, user_id: str, news_id: int) -> bool:
    result = await db.execute(
        select(UserFavorite.id).where(  # type: ignore[call-overload]
            UserFavorite.user_id == user_id,
            UserFavorite.news_id == news_id,
        )
    )
    return result.scalar_one_or_none() is not None


async def list_favorites(
    db: AsyncSession,
    user_id: str,
    *,
    limit: int = 20,
    offset: int = 0,
) -> list[FavoriteRead]:
    """Newest favorites first, with their news item and platform."""
    result = await db.execute(
        select(UserFavorite, NewsItem, Platform)
        .join(NewsItem, NewsItem.id == UserFavorite.news_id)  # type: ignore[arg-type]
        .join(Platform, Platform.id == NewsItem.platform_id)  # type: ignore[arg-type]
        .where(UserFavorite.user_id == user_id)  # type: ignore[arg-type]
        .order_by(UserFavorite.created_at.desc(), UserFavorite.id.desc())  # type: ignore[attr-defined,union-attr]
        .limit(limit)
        .offset(offset)
    )
    favorites: list[FavoriteRead] = []
    for favorite, item, platform in result.all():
        favorites.append(
            FavoriteRead(
                id=favorite.id or 0,
                news_id=favorite.news_id,
                created_at=favorite.created_at,
                news=to_news_item_read(item, platform, is_favorited=True),
            )
        )
    return favorites
