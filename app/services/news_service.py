"""Feed assembly.

Chooses which platforms a caller sees (category filter, saved or explicit
preference) and reads stored news for them, sorted and paginated. No network
calls happen here.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.news import (
    GroupedFeedResponse,
    NewsFeedResponse,
    NewsItemRead,
    PlatformNewsGroup,
    SortMode,
)
from app.schemas.news import NewsItem
from app.schemas.platforms import Platform, PlatformCategory
from app.schemas.user_favorites import UserFavorite
from app.services.preference_service import PlatformPreference, PreferenceStore
from app.services.scoring_service import ranking_order


class _PlatformLike(Protocol):
    id: str
    name: str
    category: Any
    enabled: bool


def format_relative_time(dt: datetime) -> str:
    """Convert datetime to relative time string.

    Args:
        dt: Datetime to format (assumed UTC)

    Returns:
        Relative time like '2h', '1d', '3d', '1w'
    """
    now = datetime.now(timezone.utc)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    total_seconds = (now - dt).total_seconds()
    if total_seconds < 0:
        return "now"

    minutes = int(total_seconds / 60)
    hours = int(total_seconds / 3600)
    days = int(total_seconds / 86400)

    if minutes < 60:
        return f"{max(1, minutes)}m"
    elif hours < 24:
        return f"{hours}h"
    elif days < 7:
        return f"{days}d"
    return f"{days // 7}w"


def select_feed_platforms(
    platforms: Sequence[_PlatformLike],
    preference: Optional[PlatformPreference] = None,
    category: Optional[str] = None,
) -> list[Any]:
    """Pick and order the platforms a feed should show.

    Disabled platforms are always dropped. Without a preference the result
    is in name order; with one, only preferred platforms remain, in exactly
    the preferred order.

    Args:
        platforms: Candidate platforms
        preference: Saved or explicit preference (empty counts as none)
        category: Optional category filter

    Returns:
        Platforms in display order
    """
    candidates = [p for p in platforms if p.enabled]
    if category:
        candidates = [p for p in candidates if _category_value(p.category) == category]

    if preference is None or preference.is_empty:
        return sorted(candidates, key=lambda p: (p.name, p.id))

    by_id = {p.id: p for p in candidates}
    return [by_id[pid] for pid in preference.platform_ids if pid in by_id]


def group_rows_by_platform(
    platforms: Sequence[Any],
    rows_by_platform: dict[str, list[dict[str, Any]]],
) -> GroupedFeedResponse:
    """Build the grouped view for rows that were fetched but not stored."""
    groups: list[PlatformNewsGroup] = []
    for platform in platforms:
        rows = sorted(rows_by_platform.get(platform.id, []), key=lambda r: r["hot_rank"])
        groups.append(
            PlatformNewsGroup(
                platform_id=platform.id,
                platform_name=platform.name,
                category=_category_value(platform.category),
                items=[
                    NewsItemRead(
                        id=0,
                        platform_name=platform.name,
                        category=_category_value(platform.category),
                        time=format_relative_time(row["published_at"]),
                        **row,
                    )
                    for row in rows
                ],
            )
        )
    return GroupedFeedResponse(platforms=groups)


def to_news_item_read(
    item: NewsItem, platform: Platform, *, is_favorited: bool = False
) -> NewsItemRead:
    return NewsItemRead(
        id=item.id or 0,
        platform_id=item.platform_id,
        platform_name=platform.name,
        category=_category_value(platform.category),
        title=item.title,
        url=item.url,
        api_score=item.api_score,
        final_score=item.final_score,
        hot_rank=item.hot_rank,
        content_snippet=item.content_snippet,
        image_url=item.image_url,
        published_at=item.published_at,
        fetched_at=item.fetched_at,
        fetched_date=item.fetched_date,
        time=format_relative_time(item.published_at or item.fetched_at),
        is_favorited=is_favorited,
    )


async def get_enabled_platforms(
    db: AsyncSession, category: Optional[str] = None
) -> list[Platform]:
    """Enabled platforms, optionally in one category, ordered by name."""
    stmt = select(Platform).where(Platform.enabled.is_(True))  # type: ignore[attr-defined]
    if category:
        stmt = stmt.where(Platform.category == PlatformCategory(category))  # type: ignore[arg-type]
    result = await db.execute(stmt.order_by(Platform.name))  # type: ignore[arg-type]
    return list(result.scalars().all())


async def resolve_feed_platforms(
    db: AsyncSession,
    preferences: PreferenceStore,
    *,
    user_id: Optional[str] = None,
    explicit: Optional[PlatformPreference] = None,
    category: Optional[str] = None,
) -> list[Platform]:
    """Platforms for a caller's feed.

    An explicit preference (e.g. from the query string) wins over the saved
    one; anonymous callers without one see every enabled platform.
    """
    preference = explicit
    if preference is None and user_id is not None:
        preference = await preferences.get(user_id)

    platforms = await get_enabled_platforms(db, category)
    return select_feed_platforms(platforms, preference, category)


async def get_favorited_ids(
    db: AsyncSession, user_id: Optional[str], news_ids: Sequence[int]
) -> set[int]:
    if user_id is None or not news_ids:
        return set()
    result = await db.execute(
        select(UserFavorite.news_id).where(  # type: ignore[call-overload]
            UserFavorite.user_id == user_id,
            UserFavorite.news_id.in_(list(news_ids)),  # type: ignore[attr-defined]
        )
    )
    return set(result.scalars().all())


async def get_news_feed(
    db: AsyncSession,
    *,
    platform_ids: Sequence[str],
    sort: SortMode = "hot",
    limit: int = 20,
    offset: int = 0,
    keyword: Optional[str] = None,
    user_id: Optional[str] = None,
) -> NewsFeedResponse:
    """Fetch a paginated feed over the given platforms.

    Args:
        db: Async database session
        platform_ids: Platforms to include (already filtered and ordered)
        sort: "hot" (final_score desc) or "time" (fetched_at desc)
        limit: Maximum items to return
        offset: Number of items to skip
        keyword: Optional case-insensitive title filter
        user_id: Caller, used to flag favorites

    Returns:
        NewsFeedResponse with items and pagination info
    """
    if not platform_ids:
        return NewsFeedResponse(items=[], total=0, limit=limit, offset=offset, sort=sort)

    conditions: list[Any] = [NewsItem.platform_id.in_(list(platform_ids))]  # type: ignore[attr-defined]
    if keyword:
        conditions.append(NewsItem.title.icontains(keyword, autoescape=True))  # type: ignore[attr-defined]

    count_result = await db.execute(
        select(func.count()).select_from(NewsItem).where(*conditions)
    )
    total = count_result.scalar() or 0

    result = await db.execute(
        select(NewsItem, Platform)
        .join(Platform, Platform.id == NewsItem.platform_id)  # type: ignore[arg-type]
        .where(*conditions)
        .order_by(*ranking_order(sort))
        .limit(limit)
        .offset(offset)
    )
    rows = result.all()

    favorited = await get_favorited_ids(db, user_id, [item.id for item, _ in rows])
    items = [
        to_news_item_read(item, platform, is_favorited=item.id in favorited)
        for item, platform in rows
    ]
    return NewsFeedResponse(items=items, total=total, limit=limit, offset=offset, sort=sort)


async def get_grouped_feed(
    db: AsyncSession,
    platforms: Sequence[Platform],
    *,
    per_platform: int = 20,
    user_id: Optional[str] = None,
) -> GroupedFeedResponse:
    """Latest stored batch for each platform, in the given platform order."""
    groups: list[PlatformNewsGroup] = []
    for platform in platforms:
        latest_date = (
            select(func.max(NewsItem.fetched_date))
            .where(NewsItem.platform_id == platform.id)  # type: ignore[arg-type]
            .scalar_subquery()
        )
        result = await db.execute(
            select(NewsItem)
            .where(
                NewsItem.platform_id == platform.id,  # type: ignore[arg-type]
                NewsItem.fetched_date == latest_date,  # type: ignore[arg-type]
            )
            .order_by(
                NewsItem.hot_rank.asc().nulls_last(),  # type: ignore[union-attr]
                NewsItem.id.asc(),  # type: ignore[union-attr]
            )
            .limit(per_platform)
        )
        items = list(result.scalars().all())
        favorited = await get_favorited_ids(db, user_id, [i.id for i in items if i.id])
        groups.append(
            PlatformNewsGroup(
                platform_id=platform.id,
                platform_name=platform.name,
                category=_category_value(platform.category),
                items=[
                    to_news_item_read(i, platform, is_favorited=i.id in favorited)
                    for i in items
                ],
            )
        )
    return GroupedFeedResponse(platforms=groups)


async def get_news_item(
    db: AsyncSession, news_id: int, *, user_id: Optional[str] = None
) -> Optional[NewsItemRead]:
    result = await db.execute(
        select(NewsItem, Platform)
        .join(Platform, Platform.id == NewsItem.platform_id)  # type: ignore[arg-type]
        .where(NewsItem.id == news_id)  # type: ignore[arg-type]
    )
    row = result.first()
    if row is None:
        return None
    item, platform = row
    favorited = await get_favorited_ids(db, user_id, [news_id])
    return to_news_item_read(item, platform, is_favorited=news_id in favorited)


async def get_related_news(
    db: AsyncSession, news_id: int, platform_id: str, *, limit: int = 5
) -> list[NewsItemRead]:
    """Other items from the same platform, hottest first."""
    result = await db.execute(
        select(NewsItem, Platform)
        .join(Platform, Platform.id == NewsItem.platform_id)  # type: ignore[arg-type]
        .where(
            NewsItem.platform_id == platform_id,  # type: ignore[arg-type]
            NewsItem.id != news_id,  # type: ignore[arg-type]
        )
        .order_by(*ranking_order("hot"))
        .limit(limit)
    )
    return [to_news_item_read(item, platform) for item, platform in result.all()]


def _category_value(category: Any) -> str:
    return getattr(category, "value", category)

