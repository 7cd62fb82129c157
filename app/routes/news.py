"""News feed API routes.

Provides endpoints for:
- Reading the ranked feed (flat, grouped by platform, or live from the provider)
- Single items and related items
- Triggering a refresh and purging expired batches (admin)
"""

import logging
from datetime import UTC, datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.news import (
    GroupedFeedResponse,
    LiveFeedResponse,
    NewsFeedResponse,
    NewsItemRead,
    PurgeResult,
    RefreshRequest,
    RefreshResult,
    SortMode,
)
from app.routes.dependencies import get_news_store, get_preference_store
from app.schemas.platforms import PlatformCategory
from app.services.batch_refresh_service import purge_expired_news, short_error_message
from app.services.identity import Identity, get_optional_identity, require_admin
from app.services.news_ingestion_service import (
    RefreshError,
    fetch_live_batches,
    get_fetch_limit,
    run_ingestion_cycle,
)
from app.services.news_service import (
    get_enabled_platforms,
    get_grouped_feed,
    get_news_feed,
    get_news_item,
    get_related_news,
    group_rows_by_platform,
    resolve_feed_platforms,
)
from app.services.news_store import SqlNewsStore
from app.services.preference_service import PlatformPreference, SqlPreferenceStore
from app.services.scoring_service import PlatformSnapshot
from app.utils.db_async import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/news", tags=["news"])


def _user_id(identity: Optional[Identity]) -> Optional[str]:
    return identity.user_id if identity else None


@router.get("", response_model=NewsFeedResponse)
async def list_news(
    category: Optional[PlatformCategory] = Query(default=None),
    platform_id: Optional[str] = Query(default=None, description="Single platform"),
    platforms: Optional[str] = Query(
        default=None, description="Comma-separated platform ids, in display order"
    ),
    keyword: Optional[str] = Query(default=None, max_length=100),
    sort: SortMode = Query(default="hot"),
    limit: int = Query(default=20, ge=1, le=100, description="Items per page"),
    offset: int = Query(default=0, ge=0, description="Number of items to skip"),
    identity: Optional[Identity] = Depends(get_optional_identity),
    preferences: SqlPreferenceStore = Depends(get_preference_store),
    db: AsyncSession = Depends(get_session),
) -> NewsFeedResponse:
    """Fetch the paginated feed.

    ``platform_id`` reads one enabled platform regardless of the caller's
    preference. Otherwise platforms come from the explicit ``platforms``
    list, else the caller's saved preference, else every enabled platform.
    """
    category_value = category.value if category else None
    if platform_id is not None:
        enabled = await get_enabled_platforms(db, category_value)
        platform_ids = [p.id for p in enabled if p.id == platform_id]
    else:
        feed_platforms = await resolve_feed_platforms(
            db,
            preferences,
            user_id=_user_id(identity),
            explicit=PlatformPreference.from_csv(platforms),
            category=category_value,
        )
        platform_ids = [p.id for p in feed_platforms]

    return await get_news_feed(
        db,
        platform_ids=platform_ids,
        sort=sort,
        limit=limit,
        offset=offset,
        keyword=keyword.strip() if keyword else None,
        user_id=_user_id(identity),
    )


@router.get("/grouped", response_model=GroupedFeedResponse)
async def list_news_grouped(
    category: Optional[PlatformCategory] = Query(default=None),
    platforms: Optional[str] = Query(default=None),
    per_platform: int = Query(default=20, ge=1, le=100),
    identity: Optional[Identity] = Depends(get_optional_identity),
    preferences: SqlPreferenceStore = Depends(get_preference_store),
    db: AsyncSession = Depends(get_session),
) -> GroupedFeedResponse:
    """Latest stored batch per platform, platforms in preference order."""
    feed_platforms = await resolve_feed_platforms(
        db,
        preferences,
        user_id=_user_id(identity),
        explicit=PlatformPreference.from_csv(platforms),
        category=category.value if category else None,
    )
    return await get_grouped_feed(
        db, feed_platforms, per_platform=per_platform, user_id=_user_id(identity)
    )


@router.get("/live", response_model=LiveFeedResponse)
async def list_news_live(
    category: Optional[PlatformCategory] = Query(default=None),
    platforms: Optional[str] = Query(default=None),
    identity: Optional[Identity] = Depends(get_optional_identity),
    preferences: SqlPreferenceStore = Depends(get_preference_store),
    store: SqlNewsStore = Depends(get_news_store),
    db: AsyncSession = Depends(get_session),
) -> LiveFeedResponse:
    """Fetch the caller's platforms straight from the provider without storing."""
    feed_platforms = await resolve_feed_platforms(
        db,
        preferences,
        user_id=_user_id(identity),
        explicit=PlatformPreference.from_csv(platforms),
        category=category.value if category else None,
    )
    limit = await get_fetch_limit(store)
    snapshots = [
        PlatformSnapshot(id=p.id, name=p.name, category=p.category.value, weight=p.weight)
        for p in feed_platforms
    ]
    report, rows_by_platform = await fetch_live_batches(snapshots, limit=limit)
    grouped = group_rows_by_platform(feed_platforms, rows_by_platform)
    return LiveFeedResponse(
        platforms=grouped.platforms,
        succeeded=report.succeeded,
        failed=report.failed,
        failed_platforms=report.failed_platforms,
    )


async def _parse_refresh_request(request: Request) -> RefreshRequest:
    body = await request.body()
    if not body.strip():
        return RefreshRequest()
    try:
        return RefreshRequest.model_validate_json(body)
    except ValidationError as exc:
        raise RefreshError(f"Invalid refresh request: {exc.error_count()} error(s)") from exc


@router.post("/refresh", response_model=RefreshResult)
async def trigger_refresh(
    request: Request,
    store: SqlNewsStore = Depends(get_news_store),
    _admin: Identity = Depends(require_admin),
):
    """Refresh stored news (admin).

    Body ``{platforms?: [...], category?: "..."}``; an empty body refreshes
    every enabled platform. Partial per-platform failures still return 200.
    """
    try:
        refresh_request = await _parse_refresh_request(request)
        return await run_ingestion_cycle(store, refresh_request)
    except Exception as exc:
        logger.exception("News refresh failed")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "News refresh failed, please retry later",
                "error": short_error_message(exc),
            },
        )


@router.post("/purge", response_model=PurgeResult)
async def purge_news(
    store: SqlNewsStore = Depends(get_news_store),
    _admin: Identity = Depends(require_admin),
) -> PurgeResult:
    """Delete batches older than the retention window (admin)."""
    cutoff, deleted = await purge_expired_news(
        store,
        today=datetime.now(UTC).date(),
        retention_days=settings.news_retention_days,
    )
    return PurgeResult(cutoff=cutoff, deleted=deleted)


@router.get("/{news_id}", response_model=NewsItemRead)
async def read_news_item(
    news_id: int,
    identity: Optional[Identity] = Depends(get_optional_identity),
    db: AsyncSession = Depends(get_session),
) -> NewsItemRead:
    item = await get_news_item(db, news_id, user_id=_user_id(identity))
    if item is None:
        raise HTTPException(status_code=404, detail="News item not found")
    return item


@router.get("/{news_id}/related", response_model=list[NewsItemRead])
async def read_related_news(
    news_id: int,
    limit: int = Query(default=5, ge=1, le=20),
    db: AsyncSession = Depends(get_session),
) -> list[NewsItemRead]:
    """Other items from the same platform, hottest first."""
    item = await get_news_item(db, news_id)
    if item is None:
        raise HTTPException(status_code=404, detail="News item not found")
    return await get_related_news(db, news_id, item.platform_id, limit=limit)
